# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

import re

DEFAULT_COUNTRY_CODE = "972"
CHAT_ID_SUFFIX = "@c.us"

_NON_DIGITS = re.compile(r"\D+")


def normalize_phone_number(raw: str, country_code: str = DEFAULT_COUNTRY_CODE) -> str:
    """
    Converts a user-entered phone number into international digits.

    Local mobile numbers ("050-1234567" or "501234567") get the country code;
    numbers already carrying it, and anything else, are returned as digits only.
    """
    digits = _NON_DIGITS.sub("", raw or "")
    if digits.startswith("05"):
        return country_code + digits[1:]
    if digits.startswith("5"):
        return country_code + digits
    return digits


def to_chat_id(raw: str, country_code: str = DEFAULT_COUNTRY_CODE) -> str:
    """WhatsApp chat id for a phone number."""
    return normalize_phone_number(raw, country_code) + CHAT_ID_SUFFIX
