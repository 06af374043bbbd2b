"""Message catalog for conflict verdicts.

The analyzers only deal in ``ConflictCode`` values plus a context dict; all
human-facing text is produced here so wording and locales can change without
touching decision logic.
"""

from __future__ import annotations

from fleetbook.domain.models import ConflictCode, Severity

DEFAULT_LOCALE = "en"

_LEVELS: dict[ConflictCode, Severity] = {
    ConflictCode.BLOCKED_BY_CONFIRMED: Severity.BLOCK,
    ConflictCode.CONFIRMED_CONFLICT: Severity.BLOCK,
    ConflictCode.OVERRIDE_PENDING: Severity.WARNING,
    ConflictCode.PENDING_OVERLAP: Severity.WARNING,
    ConflictCode.INTERNAL_OVERLAP: Severity.INFO,
    ConflictCode.DATE_TAKEN: Severity.BLOCK,
    ConflictCode.DATE_HAS_PENDING: Severity.WARNING,
    ConflictCode.TIME_CONFLICT: Severity.BLOCK,
    ConflictCode.CONFIRM_BLOCKED: Severity.BLOCK,
    ConflictCode.CONFIRM_AFFECTS_ONE: Severity.WARNING,
    ConflictCode.CONFIRM_AFFECTS_MANY: Severity.WARNING,
}

_TEMPLATES: dict[str, dict[ConflictCode, str]] = {
    "en": {
        ConflictCode.BLOCKED_BY_CONFIRMED: (
            "Overlaps confirmed booking «{name}» "
            "({pickup_date} {pickup_time} – {return_date} {return_time}). "
            "Buffer: {buffer_hours} h."
        ),
        ConflictCode.CONFIRMED_CONFLICT: (
            "Two confirmed rentals cannot overlap: «{name}» "
            "({pickup_date} {pickup_time} – {return_date} {return_time}). "
            "Buffer: {buffer_hours} h."
        ),
        ConflictCode.OVERRIDE_PENDING: (
            "Overlaps pending booking «{name}» "
            "({pickup_date} {pickup_time} – {return_date} {return_time}); "
            "it may be affected. Buffer: {buffer_hours} h."
        ),
        ConflictCode.PENDING_OVERLAP: (
            "Two pending bookings overlap: «{name}» "
            "({pickup_date} {pickup_time} – {return_date} {return_time}). "
            "Confirming both will cause a conflict. Buffer: {buffer_hours} h."
        ),
        ConflictCode.INTERNAL_OVERLAP: (
            "An internal draft booking exists on {date}."
        ),
        ConflictCode.DATE_TAKEN: "{date} is taken by a confirmed {ownership_label}.",
        ConflictCode.DATE_HAS_PENDING: "{date} has a pending {ownership_label}.",
        ConflictCode.TIME_CONFLICT: (
            "Time conflict on {date} with a {confirmation_label} {ownership_label}."
        ),
        ConflictCode.CONFIRM_BLOCKED: (
            "Overlaps confirmed booking «{name}» "
            "(return {return_time} → pickup {pickup_time}). "
            "Minimum buffer: {buffer_hours} h. Change the time or date."
        ),
        ConflictCode.CONFIRM_AFFECTS_ONE: (
            "Booking confirmed. It conflicts with pending booking «{name}» "
            "({pickup_time} - {return_time}), which cannot be confirmed without "
            "a time change."
        ),
        ConflictCode.CONFIRM_AFFECTS_MANY: (
            "Booking confirmed. It conflicts with {count} pending bookings, which "
            "cannot be confirmed without a time change."
        ),
    },
    "ru": {
        ConflictCode.BLOCKED_BY_CONFIRMED: (
            "Пересечение с подтверждённым заказом: «{name}» "
            "({pickup_date} {pickup_time} — {return_date} {return_time}). "
            "Буфер: {buffer_hours} ч."
        ),
        ConflictCode.CONFIRMED_CONFLICT: (
            "Два подтверждённых заказа не могут пересекаться: «{name}» "
            "({pickup_date} {pickup_time} — {return_date} {return_time}). "
            "Буфер: {buffer_hours} ч."
        ),
        ConflictCode.OVERRIDE_PENDING: (
            "Пересечение с неподтверждённым заказом: «{name}» "
            "({pickup_date} {pickup_time} — {return_date} {return_time}). "
            "Буфер между заказами: {buffer_hours} ч."
        ),
        ConflictCode.PENDING_OVERLAP: (
            "Два ожидающих заказа пересекаются: «{name}» "
            "({pickup_date} {pickup_time} — {return_date} {return_time}). "
            "При подтверждении обоих возникнет конфликт. Буфер: {buffer_hours} ч."
        ),
        ConflictCode.INTERNAL_OVERLAP: (
            "На {date} существует внутренний черновик заказа."
        ),
        ConflictCode.DATE_TAKEN: "Дата {date} занята: {ownership_label} (подтверждён).",
        ConflictCode.DATE_HAS_PENDING: "На {date} есть {ownership_label} (ожидает).",
        ConflictCode.TIME_CONFLICT: (
            "Конфликт времени {date}: {ownership_label} ({confirmation_label})."
        ),
        ConflictCode.CONFIRM_BLOCKED: (
            "Время пересекается с подтверждённым заказом «{name}». "
            "Возврат: {return_time} → Забор: {pickup_time}. "
            "Минимальный буфер: {buffer_hours} ч. Измените время или дату."
        ),
        ConflictCode.CONFIRM_AFFECTS_ONE: (
            "Заказ подтверждён. Конфликт с ожидающим заказом «{name}» "
            "({pickup_time} - {return_time}). Этот заказ не сможет быть "
            "подтверждён без изменения времени."
        ),
        ConflictCode.CONFIRM_AFFECTS_MANY: (
            "Заказ подтверждён. Конфликт с {count} ожидающими заказами. "
            "Они не смогут быть подтверждены без изменения времени."
        ),
    },
}

_LABELS: dict[str, dict[str, str]] = {
    "en": {
        "business": "customer booking",
        "internal": "internal booking",
        "confirmed": "confirmed",
        "pending": "pending",
        "cancelled": "cancelled",
        "unknown_customer": "Unknown",
    },
    "ru": {
        "business": "клиентский заказ",
        "internal": "внутреннее бронирование",
        "confirmed": "подтверждённым",
        "pending": "ожидающим подтверждения",
        "cancelled": "отменённым",
        "unknown_customer": "Неизвестный",
    },
}


def supported_locales() -> list[str]:
    return sorted(_TEMPLATES)


def _locale(locale: str | None) -> str:
    return locale if locale in _TEMPLATES else DEFAULT_LOCALE


def level_for(code: ConflictCode) -> Severity:
    return _LEVELS[code]


def label(key: str, locale: str | None = DEFAULT_LOCALE) -> str:
    """Return a short label (ownership, confirmation, placeholder names)."""
    return _LABELS[_locale(locale)].get(key, key)


def render(code: ConflictCode, locale: str | None = DEFAULT_LOCALE, **context: object) -> str:
    """Format the template for *code* in *locale* with *context*.

    Unknown locales fall back to English.
    """
    template = _TEMPLATES[_locale(locale)][code]
    return template.format(**context)


_HINTS: dict[str, dict[str, str]] = {
    "en": {
        "pickup_too_early": "Pickup must not be earlier than {bound}.",
        "return_too_late": "Return must not be later than {bound}.",
        "fix_min_pickup_label": "Set pickup time: {time}",
        "fix_min_pickup_reason": "Earliest allowed pickup is {time}.",
        "fix_max_return_label": "Set return time: {time}",
        "fix_max_return_reason": "Latest allowed return is {time}.",
        "fix_proceed_label": "Proceed (pending bookings will be affected)",
        "fix_proceed_reason": "A confirmed booking may overlap pending requests.",
        "fix_both_label": "Set: {pickup} – {return_}",
        "fix_both_reason": "Conflict-free interval.",
        "fix_cannot_resolve_label": "Cannot resolve the conflict automatically",
        "fix_cannot_resolve_reason": "Pick other dates or contact the customer.",
        "override_title": "Forced booking creation!",
        "override_business": "Will conflict with {count} customer booking(s):",
        "override_internal": "Will conflict with {count} internal booking(s).",
        "override_footer": "This action will be logged. Are you sure you want to continue?",
        "override_refused": "These conflicts cannot be overridden.",
    },
    "ru": {
        "pickup_too_early": "Время получения должно быть не раньше {bound}.",
        "return_too_late": "Время возврата должно быть не позже {bound}.",
        "fix_min_pickup_label": "Установить время получения: {time}",
        "fix_min_pickup_reason": "Минимальное допустимое время получения — {time}.",
        "fix_max_return_label": "Установить время возврата: {time}",
        "fix_max_return_reason": "Максимальное допустимое время возврата — {time}.",
        "fix_proceed_label": "Продолжить (ожидающие заказы будут затронуты)",
        "fix_proceed_reason": "Подтверждённый заказ может перекрыть ожидающие заявки.",
        "fix_both_label": "Установить: {pickup} — {return_}",
        "fix_both_reason": "Интервал без конфликтов.",
        "fix_cannot_resolve_label": "Невозможно разрешить конфликт автоматически",
        "fix_cannot_resolve_reason": "Выберите другие даты или свяжитесь с клиентом.",
        "override_title": "Принудительное создание заказа!",
        "override_business": "Будет конфликт с {count} клиентским(и) заказом(ами):",
        "override_internal": "Будет конфликт с {count} внутренним(и) бронированием(ями).",
        "override_footer": "Это действие будет залогировано. Вы уверены, что хотите продолжить?",
        "override_refused": "Эти конфликты не могут быть переопределены.",
    },
}


def hint(key: str, locale: str | None = DEFAULT_LOCALE, **context: object) -> str:
    """Format a non-conflict text (bounds hints, fix labels, override dialog)."""
    return _HINTS[_locale(locale)][key].format(**context)
