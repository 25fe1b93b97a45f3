"""
WhatsApp messaging layer.

Holds the session connection manager that keeps a single paired WhatsApp
account alive, the session clients it drives, and phone helpers used to
address outbound messages.
"""
