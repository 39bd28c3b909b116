"""Static translation tables and display-language resolution.

Adding a language means adding a table to ``TRANSLATIONS``; the resolver and
the presentation layer pick it up from there.
"""

from __future__ import annotations

DEFAULT_LANGUAGE = "en"

RTL_LANGUAGES = frozenset({"he"})

LANGUAGE_NAMES: dict[str, str] = {
    "en": "English",
    "he": "עברית",
    "ru": "Русский",
}

TRANSLATIONS: dict[str, dict[str, str]] = {
    "en": {
        "title": "ADHD Daily Scheduler",
        "login": "Sign in with Google",
        "generateSchedule": "Generate today's schedule",
        "logout": "Log out",
        "signedInAs": "Signed in as {email}",
        "language": "Language",
        "scheduleCreated": "Schedule created",
        "scheduleCreatedBody": "{count} events were added to your Google Calendar for {date}.",
        "summarySent": "A summary email has been sent. You may close this page.",
        "mailFailedNote": "We could not send the summary email, but your calendar is ready.",
        "calendarFailed": "Failed to create calendar events. Please try again later.",
        "authFailed": "Authentication failed. Please try signing in again.",
        "unexpectedError": "Something went wrong. Please try again later.",
        "missingCode": "Missing code parameter.",
        "invalidDate": "The requested date is not valid.",
        "backHome": "Back to the start page",
        "emailSubject": "Your ADHD schedule has been created",
        "emailBody": (
            "Your daily schedule has been added to your Google Calendar. "
            "Stay focused and be kind to yourself!"
        ),
        "emailGreeting": "Hello,",
        "emailSignature": "Your ADHD Personal Coach",
    },
    "he": {
        "title": "מתכנן יומי ל-ADHD",
        "login": "התחברות עם Google",
        "generateSchedule": "יצירת לוח הזמנים להיום",
        "logout": "התנתקות",
        "signedInAs": "מחובר/ת בתור {email}",
        "language": "שפה",
        "scheduleCreated": "לוח הזמנים נוצר",
        "scheduleCreatedBody": "{count} אירועים נוספו ליומן Google שלך עבור {date}.",
        "summarySent": "נשלח אליך מייל סיכום. אפשר לסגור את הדף.",
        "mailFailedNote": "לא הצלחנו לשלוח את מייל הסיכום, אבל היומן שלך מוכן.",
        "calendarFailed": "יצירת האירועים ביומן נכשלה. נסו שוב מאוחר יותר.",
        "authFailed": "האימות נכשל. נסו להתחבר שוב.",
        "unexpectedError": "משהו השתבש. נסו שוב מאוחר יותר.",
        "missingCode": "חסר פרמטר code.",
        "invalidDate": "התאריך המבוקש אינו תקין.",
        "backHome": "חזרה לדף הראשי",
        "emailSubject": "לוח הזמנים שלך נוצר",
        "emailBody": "לוח הזמנים היומי שלך נוסף ליומן Google. הישארו ממוקדים והיו טובים לעצמכם!",
        "emailGreeting": "שלום,",
        "emailSignature": "המאמן האישי שלך ל-ADHD",
    },
    "ru": {
        "title": "Ежедневный планировщик при СДВГ",
        "login": "Войти через Google",
        "generateSchedule": "Создать расписание на сегодня",
        "logout": "Выйти",
        "signedInAs": "Вы вошли как {email}",
        "language": "Язык",
        "scheduleCreated": "Расписание создано",
        "scheduleCreatedBody": "В ваш Google Календарь добавлено событий: {count} на {date}.",
        "summarySent": "Письмо с итогами отправлено. Эту страницу можно закрыть.",
        "mailFailedNote": "Не удалось отправить письмо с итогами, но календарь готов.",
        "calendarFailed": "Не удалось создать события в календаре. Попробуйте позже.",
        "authFailed": "Ошибка аутентификации. Попробуйте войти снова.",
        "unexpectedError": "Что-то пошло не так. Попробуйте позже.",
        "missingCode": "Отсутствует параметр code.",
        "invalidDate": "Запрошенная дата некорректна.",
        "backHome": "Вернуться на главную",
        "emailSubject": "Ваше расписание создано",
        "emailBody": (
            "Ваше расписание на день добавлено в Google Календарь. "
            "Сохраняйте фокус и будьте добры к себе!"
        ),
        "emailGreeting": "Здравствуйте,",
        "emailSignature": "Ваш персональный коуч по СДВГ",
    },
}

SUPPORTED_LANGUAGES: tuple[str, ...] = tuple(TRANSLATIONS)


def normalize_language(code: str | None) -> str | None:
    """Map a language tag to a supported code, or None.

    ``ru-RU`` and ``RU`` both map to ``ru``; ``iw`` (legacy Hebrew) maps to ``he``.
    """
    if not code:
        return None
    primary = code.strip().replace("_", "-").split("-", 1)[0].lower()
    if primary == "iw":
        primary = "he"
    return primary if primary in TRANSLATIONS else None


def parse_accept_language(header: str | None) -> list[str]:
    """Return language tags from an ``Accept-Language`` header, best first."""
    if not header:
        return []
    weighted: list[tuple[float, int, str]] = []
    for position, part in enumerate(header.split(",")):
        pieces = part.strip().split(";")
        tag = pieces[0].strip()
        if not tag or tag == "*":
            continue
        quality = 1.0
        for param in pieces[1:]:
            name, _, value = param.strip().partition("=")
            if name.strip() == "q":
                try:
                    quality = float(value)
                except ValueError:
                    quality = 0.0
        if quality <= 0:
            continue
        weighted.append((-quality, position, tag))
    return [tag for _, _, tag in sorted(weighted)]


def resolve_language(
    query: str | None,
    accept_language: str | None = None,
    session_language: str | None = None,
) -> str:
    """Pick the display language.

    Order: explicit query parameter, the session's remembered choice, the
    request's ``Accept-Language`` preference, then ``DEFAULT_LANGUAGE``.
    Unsupported codes are skipped without error.
    """
    for candidate in (query, session_language):
        resolved = normalize_language(candidate)
        if resolved:
            return resolved
    for tag in parse_accept_language(accept_language):
        resolved = normalize_language(tag)
        if resolved:
            return resolved
    return DEFAULT_LANGUAGE


def translate(key: str, language: str, **params: object) -> str:
    """Look up *key* for *language*, falling back to English, then to the key."""
    table = TRANSLATIONS.get(language) or TRANSLATIONS[DEFAULT_LANGUAGE]
    text = table.get(key) or TRANSLATIONS[DEFAULT_LANGUAGE].get(key) or key
    if params:
        return text.format(**params)
    return text


def text_direction(language: str) -> str:
    return "rtl" if language in RTL_LANGUAGES else "ltr"
