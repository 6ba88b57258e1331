"""Per-bot behaviour tables: commands, keyword rules and reply templates.

Both bots are served by the same ``CommandRouter``; everything that differs
between them lives in a ``BotProfile``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass

from src.bots.intents import IntentRule
from src.bots.replies import html, plain, render
from src.models import DeferredReply, InboundUpdate, Intent, RouteResult

CommandHandler = Callable[[InboundUpdate], RouteResult]

ASK_REPLY_DELAY_SECONDS = 2.0

LAWSENSE = "lawsense"
DENSA = "densa"


@dataclass(frozen=True)
class BotProfile:
    name: str
    tag: str
    commands: Mapping[str, CommandHandler]
    intent_rules: tuple[IntentRule, ...]
    intent_templates: Mapping[Intent, str]
    description: str = ""


def _reply(text: str) -> RouteResult:
    return RouteResult(replies=[html(text)])


# --- LawSense (legal assistant) ---

_LAW_START = (
    "Привет, @{username}!\n\n"
    "Это LawSense - юридический помощник.\n\n"
    "Доступные команды:\n"
    "/help - помощь\n"
    "/article [номер] - найти статью\n"
    "/ask [вопрос] - задать юридический вопрос\n"
    "/stats - статистика"
)

_LAW_HELP = (
    "Помощь по LawSense:\n\n"
    "Основные команды:\n"
    "/start - начать работу\n"
    "/article 116 - найти статью 116\n"
    "/ask - задать юридический вопрос\n"
    "/stats - посмотреть статистику\n\n"
    "Примеры вопросов:\n"
    "• \"Что делать при нарушении ПДД?\"\n"
    "• \"Как подать в суд?\"\n"
    "• \"Права потребителя\""
)

_LAW_ARTICLE = (
    "Статья {number}\n\n"
    "Ищу статью {number} в базе данных...\n\n"
    "В демо-версии показывается заглушка."
)

ARTICLE_USAGE = "Укажите номер статьи. Например: /article 116"
ASK_USAGE = "Задайте ваш вопрос. Например: /ask Что делать при ДТП?"
ASK_ACK = "Обрабатываю ваш вопрос..."

ASK_CANDIDATES = (
    "По вашему вопросу \"{question}\":\n\n"
    "Рекомендую обратиться к статьям 115-118 КоАП РК.\n"
    "Для точной консультации свяжитесь с юристом.\n\n"
    "(Демо-ответ.)",
    "Анализ вопроса: \"{question}\"\n\n"
    "Найдены релевантные статьи в базе.\n"
    "В продакшене здесь будет развернутый ответ с ссылками.",
)

# Demo figures; there is no statistics store behind this command.
_LAW_STATS = (
    "Статистика пользователя\n\n"
    "ID: <code>{user_id}</code>\n"
    "Запросов сегодня: 5\n"
    "Всего запросов: 23\n"
    "Подписка: Базовая\n\n"
    "В реальной версии данные берутся из PostgreSQL"
)


def law_start(update: InboundUpdate) -> RouteResult:
    return _reply(render(_LAW_START, username=update.sender_display_name))


def law_help(update: InboundUpdate) -> RouteResult:
    return _reply(_LAW_HELP)


def law_article(update: InboundUpdate) -> RouteResult:
    if not update.command_argument:
        return RouteResult(replies=[plain(ARTICLE_USAGE)])
    return _reply(render(_LAW_ARTICLE, number=update.command_argument))


def law_ask(update: InboundUpdate) -> RouteResult:
    question = update.command_argument
    if not question:
        return RouteResult(replies=[plain(ASK_USAGE)])
    return RouteResult(
        replies=[plain(ASK_ACK)],
        deferred=DeferredReply(
            candidates=tuple(render(t, question=question) for t in ASK_CANDIDATES),
            delay_seconds=ASK_REPLY_DELAY_SECONDS,
        ),
    )


def law_stats(update: InboundUpdate) -> RouteResult:
    user_id = update.sender_id if update.sender_id is not None else "unknown"
    return _reply(render(_LAW_STATS, user_id=user_id))


LAWSENSE_PROFILE = BotProfile(
    name=LAWSENSE,
    tag="LAW",
    commands={
        "start": law_start,
        "help": law_help,
        "article": law_article,
        "ask": law_ask,
        "stats": law_stats,
    },
    intent_rules=(
        IntentRule(("пдд", "дтп"), Intent.TRAFFIC_OR_ACCIDENT),
        IntentRule(("суд", "иск"), Intent.JUDICIAL_PROCESS),
    ),
    intent_templates={
        Intent.TRAFFIC_OR_ACCIDENT: (
            "Вопрос по ПДД/ДТП:\n\n"
            "Рекомендую изучить статьи 115-118 КоАП РК.\n"
            "При серьезных нарушениях обращайтесь к юристу."
        ),
        Intent.JUDICIAL_PROCESS: (
            "Судебные вопросы:\n\n"
            "Для подачи иска необходимо:\n"
            "• Составить исковое заявление\n"
            "• Собрать доказательства\n"
            "• Оплатить госпошлину\n\n"
            "Рекомендуется консультация с юристом."
        ),
        Intent.GENERIC: (
            "Обработка вопроса: \"{text}\"\n\n"
            "В реальной версии тут будет AI-анализ и ссылки на законы.\n"
            "Используйте /help или /ask [вопрос]"
        ),
    },
    description="LawSense - юридический помощник",
)


# --- Densa (medical assistant) ---

EMERGENCY_NUMBER = "103"

_MED_START = (
    "Привет, @{username}!\n\n"
    "Densa - медицинский помощник.\n\n"
    "Важно: информация не заменяет консультацию врача!\n\n"
    "Доступные команды:\n"
    "/help - помощь\n"
    "/symptoms - описать симптомы\n"
    "/emergency - экстренные случаи"
)

_MED_HELP = (
    "Помощь по Densa:\n\n"
    "/start - начать работу\n"
    "/symptoms - описать симптомы\n"
    "/emergency - экстренные случаи\n\n"
    "Можно просто написать, что вас беспокоит, например: \"болит голова\".\n\n"
    "Информация не заменяет консультацию врача."
)

_MED_SYMPTOMS = (
    "Опишите симптомы одним сообщением:\n\n"
    "• что беспокоит и где\n"
    "• как давно началось\n"
    "• температура, если измеряли\n\n"
    "Для точного диагноза обязательно обратитесь к врачу."
)

_MED_EMERGENCY = (
    "Экстренные случаи\n\n"
    f"Скорая помощь: <b>{EMERGENCY_NUMBER}</b>\n"
    "Единый номер экстренных служб: <b>112</b>\n\n"
    "Не откладывайте звонок при угрозе жизни."
)


def med_start(update: InboundUpdate) -> RouteResult:
    return _reply(render(_MED_START, username=update.sender_display_name))


def med_help(update: InboundUpdate) -> RouteResult:
    return _reply(_MED_HELP)


def med_symptoms(update: InboundUpdate) -> RouteResult:
    return _reply(_MED_SYMPTOMS)


def med_emergency(update: InboundUpdate) -> RouteResult:
    return _reply(_MED_EMERGENCY)


DENSA_PROFILE = BotProfile(
    name=DENSA,
    tag="MED",
    commands={
        "start": med_start,
        "help": med_help,
        "symptoms": med_symptoms,
        "emergency": med_emergency,
    },
    intent_rules=(
        IntentRule(("болит", "боль"), Intent.PAIN_REPORTED),
    ),
    intent_templates={
        Intent.PAIN_REPORTED: (
            "Болевые ощущения\n\n"
            "При сильной боли обратитесь к врачу!\n"
            f"Экстренная помощь: {EMERGENCY_NUMBER}\n\n"
            "Это не замена медицинской консультации."
        ),
        Intent.GENERIC: (
            "Спасибо за обращение!\n\n"
            "Для точного диагноза и лечения обязательно обратитесь к врачу.\n"
            f"Экстренная помощь: {EMERGENCY_NUMBER}"
        ),
    },
    description="Densa - медицинский помощник",
)


PROFILES: dict[str, BotProfile] = {
    LAWSENSE: LAWSENSE_PROFILE,
    DENSA: DENSA_PROFILE,
}
