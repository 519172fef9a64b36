"""HealthBot question answering.

Questions go to a remote Q&A endpoint (``HEALTH_BOT_URL``) which answers
``{"answer": "..."}`` or ``{"fallback": true}``. Any failure is downgraded
to a canned offline answer picked by keyword, so the bot always answers.
"""

import logging
from dataclasses import dataclass

import requests
from sqlalchemy.orm import Session

from healthhub.core import config
from healthhub.core.errors import ExternalServiceError, ValidationError
from healthhub.models.account import Account
from healthhub.models.bot_exchange import BotExchange

logger = logging.getLogger(__name__)

MAX_QUESTION_LENGTH = 1000
HISTORY_LIMIT = 50

OFFLINE_ANSWERS = [
    (
        ('headache', 'head ache'),
        'Headaches can be caused by stress, dehydration, lack of sleep, or eye strain. For occasional '
        'headaches, rest, hydration, and over-the-counter pain relievers may help. If you experience severe '
        'or recurring headaches, please consult a healthcare professional.',
    ),
    (
        ('cold', 'flu', 'fever'),
        'Common cold and flu symptoms include fever, cough, sore throat, body aches, and fatigue. Rest, stay '
        'hydrated, and consider over-the-counter medications for symptom relief. If symptoms are severe or '
        'persistent, please consult a healthcare professional.',
    ),
    (
        ('blood pressure', 'hypertension'),
        'Healthy blood pressure is typically around 120/80 mmHg. Lifestyle changes like regular exercise, '
        'reduced sodium intake, stress management, and maintaining a healthy weight can help manage blood '
        'pressure. Regular monitoring is important, especially if you have risk factors.',
    ),
    (
        ('diabetes',),
        "Diabetes is a condition where your body either doesn't make enough insulin or can't effectively use "
        'the insulin it produces. Symptoms may include increased thirst, frequent urination, and fatigue. '
        'Management typically includes monitoring blood sugar, medication, proper diet, and regular exercise.',
    ),
    (
        ('exercise', 'workout'),
        'Regular physical activity offers numerous health benefits including weight management, reduced risk '
        'of chronic diseases, stronger muscles and bones, and improved mental health. Aim for at least 150 '
        'minutes of moderate aerobic activity or 75 minutes of vigorous activity each week, along with '
        'muscle-strengthening activities.',
    ),
    (
        ('diet', 'nutrition'),
        'A balanced diet rich in fruits, vegetables, whole grains, lean proteins, and healthy fats provides '
        'essential nutrients for good health. Limit processed foods, added sugars, and excessive sodium. Proper '
        'nutrition helps maintain a healthy weight and reduces the risk of chronic diseases.',
    ),
    (
        ('sleep', 'insomnia'),
        'Most adults need 7 to 9 hours of sleep per night. Keep a regular sleep schedule, limit caffeine and '
        'screens before bed, and keep your bedroom dark and quiet. If poor sleep persists for several weeks, '
        'please consult a healthcare professional.',
    ),
    (
        ('stress', 'anxiety'),
        'Stress can affect both physical and mental health. Regular exercise, enough sleep, breathing '
        'exercises, and talking with people you trust can help. If stress or anxiety interferes with daily '
        'life, consider speaking with a healthcare professional.',
    ),
    (
        ('heart', 'chest pain'),
        'Heart health benefits from regular activity, a balanced diet, not smoking, and keeping blood pressure '
        'and cholesterol in check. Chest pain, shortness of breath, or pain spreading to the arm or jaw can be '
        'signs of an emergency: seek medical help immediately.',
    ),
    (
        ('weight',),
        'Healthy weight management combines a balanced diet with regular physical activity. Aim for gradual '
        'changes of about 0.5 to 1 kg per week. A healthcare professional can help you set a target that suits '
        'your health needs.',
    ),
]

GENERIC_OFFLINE_ANSWER = (
    "I apologize, but I'm currently operating in offline mode due to connectivity issues. For specific "
    'medical advice, please consult a healthcare professional or try again later when the service is available.'
)


@dataclass
class BotAnswer:
    question: str
    answer: str
    offline: bool
    exchange_id: int | None = None


def offline_answer(question: str) -> str:
    question_lower = question.lower()
    for keywords, answer in OFFLINE_ANSWERS:
        if any(keyword in question_lower for keyword in keywords):
            return answer
    return GENERIC_OFFLINE_ANSWER


def fetch_remote_answer(question: str, http=requests) -> str:
    if not config.HEALTH_BOT_URL:
        raise ExternalServiceError('HealthBot endpoint is not configured.')

    try:
        response = http.post(
            config.HEALTH_BOT_URL,
            json={'question': question},
            timeout=config.HEALTH_BOT_TIMEOUT_SECONDS,
        )
    except requests.RequestException as exc:
        raise ExternalServiceError(f'HealthBot endpoint unreachable: {exc}') from exc

    if not response.ok:
        raise ExternalServiceError(f'HealthBot endpoint returned HTTP {response.status_code}.')

    try:
        data = response.json()
    except ValueError as exc:
        raise ExternalServiceError('HealthBot endpoint returned malformed JSON.') from exc

    if not isinstance(data, dict) or data.get('fallback'):
        raise ExternalServiceError('HealthBot endpoint asked for the offline fallback.')

    answer = data.get('answer')
    if not isinstance(answer, str) or not answer.strip():
        raise ExternalServiceError('HealthBot endpoint returned no answer.')

    return answer.strip()


def ask(question: str, http=requests) -> BotAnswer:
    normalized = (question or '').strip()
    if not normalized:
        raise ValidationError('Please enter a question.')
    if len(normalized) > MAX_QUESTION_LENGTH:
        raise ValidationError(f'Questions must be {MAX_QUESTION_LENGTH} characters or fewer.')

    try:
        return BotAnswer(question=normalized, answer=fetch_remote_answer(normalized, http=http), offline=False)
    except ExternalServiceError as exc:
        logger.warning('HealthBot falling back to offline answer: %s', exc.message)
        return BotAnswer(question=normalized, answer=offline_answer(normalized), offline=True)


def ask_and_record(db: Session, account: Account, question: str, http=requests) -> BotAnswer:
    result = ask(question, http=http)

    exchange = BotExchange(
        account_id=account.id,
        question=result.question,
        answer=result.answer,
        offline=result.offline,
    )
    db.add(exchange)
    db.commit()
    db.refresh(exchange)

    result.exchange_id = exchange.id
    return result


def history(db: Session, account: Account, limit: int = HISTORY_LIMIT) -> list[BotExchange]:
    recent = db.query(BotExchange).filter(
        BotExchange.account_id == account.id,
    ).order_by(BotExchange.id.desc()).limit(limit).all()
    return list(reversed(recent))
