"""
Static project catalog served by /api/projects/{id}.
"""

from __future__ import annotations

from typing import Optional

PROJECTS: dict[str, dict] = {
    "hatam-sofer": {
        "title": "פרויקט חתם סופר אשקלון",
        "subtitle": 'התחדשות עירונית - תמ"א 38/1',
        "description": 'פרויקט חתם סופר מציע לדיירים איכות חיים משודרגת, תוך חיזוק המבנים והוספת ממ"דים, מרפסות שמש וחניה. הפרויקט משלב חדשנות וקיימות, ומעניק לדיירים ביטחון ונוחות מקסימלית.',
        "address": "חתם סופר 1-3, אשקלון",
        "architect": "גרוסמן אדריכלים",
        "details": [
            "חיזוק מבנים מפני רעידות אדמה",
            'הוספת ממ"דים לכל יחידת דיור',
            "הוספת מרפסות שמש",
            "הוספת מעלית וחניה תת-קרקעית",
            "שיפוץ וחידוש חזיתות הבניין",
            "שיפור התשתיות המשותפות"
        ]
    },
    "abarbanel": {
        "title": "פרויקט אברבנל אשקלון",
        "subtitle": 'התחדשות עירונית - תמ"א 38/2',
        "description": "פרויקט אברבנל הוא פרויקט הריסה ובנייה מחדש, שנועד ליצור סביבת מגורים מודרנית ואיכותית. הפרויקט כולל דירות חדשות ומרווחות עם מפרט טכני עשיר, תוך שמירה על עיצוב אדריכלי עכשווי.",
        "address": "אברבנל 8-10, אשקלון",
        "architect": "גבריאל אדריכלים",
        "details": [
            "הריסת מבנים ישנים ובנייה מחדש",
            "דירות חדשות ומודרניות",
            "שטחים משותפים מעוצבים",
            "תכנון חדשני ומרחב מחיה מרווח",
            "קרבה למרכז העיר ולמוסדות חינוך"
        ]
    },
    "histadrut": {
        "title": "פרויקט ההסתדרות אשקלון",
        "subtitle": 'התחדשות עירונית - תמ"א 38/1',
        "description": "במסגרת פרויקט זה, אנו מבצעים חיזוק ושיקום מבנים, ומוסיפים יחידות דיור חדשות. הפרויקט משלב פתרונות אדריכליים מתקדמים עם תשומת לב לפרטים הקטנים, על מנת להבטיח את שביעות רצונם של הדיירים.",
        "address": "ההסתדרות 1-5, אשקלון",
        "architect": "בנימין דוד אדריכלים",
        "details": [
            "שיפוץ וחיזוק המבנה",
            'הוספת ממ"דים ומרפסות',
            "שיקום ושיפוץ תשתית הבניין",
            "שיפור חללי הכניסה והחדר מדרגות",
            "הוספת מעלית"
        ]
    },
    "shevet-sofer": {
        "title": "פרויקט שבט סופר אשקלון",
        "subtitle": 'התחדשות עירונית - תמ"א 38/1',
        "description": "פרויקט שבט סופר מעניק פתרון מגורים איכותי וחדשני, תוך חיזוק המבנה הקיים והוספת שטחים ציבוריים ירוקים. הפרויקט מתאים במיוחד למשפחות ומציע סביבה שקטה ובטוחה.",
        "address": "שבט סופר 12, אשקלון",
        "architect": "גרוסמן אדריכלים",
        "details": [
            "חיזוק מבנים קיימים",
            'הוספת ממ"דים ומרפסות',
            "שיפוץ חזיתות הבניין",
            "פיתוח סביבתי וגינון",
            "הוספת מעלית"
        ]
    },
    "yehudah-halevi": {
        "title": "פרויקט יהודה הלוי אשקלון",
        "subtitle": 'התחדשות עירונית - תמ"א 38/2',
        "description": "פרויקט הריסה ובנייה מחדש במיקום מרכזי. הדירות בפרויקט זה תוכננו בקפידה על מנת למקסם את המרחב ולאפשר איכות חיים גבוהה. הפרויקט כולל לובי מפואר ושטחים ציבוריים נוספים.",
        "address": "יהודה הלוי 7, אשקלון",
        "architect": "אלי אדריכלים",
        "details": [
            "הריסה ובנייה מחדש",
            "תכנון דירות מודרניות ופונקציונליות",
            "לובי כניסה מעוצב",
            "חניה פרטית לכל דירה",
            "פיתוח סביבתי ברמה גבוהה"
        ]
    },
    "akiva-eiger": {
        "title": "פרויקט עקיבא איגר אשקלון",
        "subtitle": "התחדשות עירונית - פינוי בינוי",
        "description": "אחד הפרויקטים הגדולים והמשמעותיים בעיר אשקלון. במסגרתו, נהרסו המבנים הישנים והוקמו במקומם בניינים חדשים ומודרניים, עם מאות יחידות דיור חדשות, שטחים ירוקים ומרחבים ציבוריים לרווחת התושבים.",
        "address": "עקיבא איגר 1-5, אשקלון",
        "architect": "אלי אדריכלים",
        "details": [
            "מתחם פינוי בינוי רחב היקף",
            "דירות חדשות במגוון גדלים",
            "שטחים ציבוריים ופארקים",
            "חניה תת-קרקעית",
            "קרבה למרכזים מסחריים ותחבורה ציבורית"
        ]
    },
    "shai-agnon": {
        "title": "פרויקט שי עגנון אשקלון",
        "subtitle": 'התחדשות עירונית - תמ"א 38/2',
        "description": "פרויקט הריסה ובנייה מחדש המציע דירות יוקרה עם מפרט עשיר, במיקום שקט ומבוקש. הפרויקט מתאפיין בעיצוב מודרני ואלגנטי, ומעניק לדיירים חווית מגורים יוצאת דופן.",
        "address": "שי עגנון 2, אשקלון",
        "architect": "יוסף אדריכלים",
        "details": [
            "בניית בניין בוטיק יוקרתי",
            "דירות פנטהאוז ודירות גן",
            "מפרט טכני עשיר",
            "עיצוב אדריכלי ייחודי",
            "חניה פרטית"
        ]
    },
    "magadim-kg": {
        "title": "פרויקט שכונת מגדים, קריית גת",
        "subtitle": "התחדשות עירונית - פינוי בינוי",
        "description": "פרויקט פינוי בינוי רחב היקף שמטרתו לחדש את שכונת מגדים בקרית גת. הפרויקט כולל בניית מגדלי מגורים חדשניים, לצד פיתוח תשתיות, שטחים ירוקים ומוסדות ציבוריים, לטובת יצירת סביבת מגורים תוססת ואיכותית.",
        "address": "שכונת מגדים, קריית גת",
        "architect": "גרוסמן אדריכלים",
        "details": [
            "פרויקט פינוי בינוי גדול",
            "דירות חדשות ומרווחות",
            "פיתוח תשתיות מתקדם",
            "קרבה למרכזים מסחריים ופארקים",
            "שטחים משותפים נרחבים"
        ]
    }
}


def get_project(project_id: str) -> Optional[dict]:
    """Return the project record for a slug, or None if unknown."""
    return PROJECTS.get(project_id)
