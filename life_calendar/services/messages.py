"""User-facing texts for the life calendar bot.

Pure presentation logic, no I/O.
"""

from typing import Sequence

from .life_expectancy import LifeStats

ONBOARDING_PROMPT = (
    "Привет! Я бот 'Календарь жизни'. Давайте начнем!\n"
    "Пожалуйста, введите вашу дату рождения в формате YYYY-MM-DD."
)

DATE_FORMAT_ERROR = (
    "Неверный формат даты. Пожалуйста, введите дату в формате YYYY-MM-DD."
)

REGION_PROMPT = (
    "Отлично! Теперь укажите ваш регион проживания (например, Россия, США, Германия)."
)

PERSISTENCE_FAILURE = (
    "Извините, не удалось сохранить ваши данные. Пожалуйста, попробуйте еще раз позже."
)

MORNING_GREETING = "☀️ Доброе утро! Желаю вам хорошего дня и продуктивного начала!"


def format_unknown_region(regions: Sequence[str]) -> str:
    return (
        "Неизвестный регион. Пожалуйста, выберите из списка: "
        f"{', '.join(regions)}."
    )


def format_registration_confirmation(date_of_birth: str, region: str) -> str:
    return (
        f"Спасибо! Ваша дата рождения: {date_of_birth}, регион: {region}.\n"
        "Вы будете получать уведомления каждую неделю."
    )


def format_weekly_statistics(stats: LifeStats) -> str:
    """Render the weekly statistics message.

    Args:
        stats: Freshly computed statistics for the user.

    Returns:
        Multi-line text with weeks lived, weeks left and expectancy.
    """
    return (
        "📊 Ваша статистика:\n"
        f"• Недель прожито: {stats.weeks_lived}\n"
        f"• Примерно осталось: {stats.weeks_left} недель\n"
        f"• Ожидаемая продолжительность жизни: {stats.expectancy_years} лет"
    )
