from typing import Iterable, List

from sqlalchemy.exc import SQLAlchemyError

from trivia import db
from trivia.models import Category, Question
from .errors import QuestionSupplyError
from .session import QuestionSnapshot


def fetch_questions(difficulty: str, categories: Iterable, count: int) -> List[QuestionSnapshot]:
    """Pick up to ``count`` random questions for a room.

    ``difficulty='all'`` and an empty ``categories`` disable the respective
    filter. Categories may be given by id or by name.
    """
    categories = list(categories or [])
    try:
        query = Question.query.join(Category)
        if difficulty and difficulty != 'all':
            query = query.filter(Question.difficulty == difficulty)
        if categories:
            ids = [int(c) for c in categories if isinstance(c, int) or str(c).isdigit()]
            names = [str(c) for c in categories if not (isinstance(c, int) or str(c).isdigit())]
            query = query.filter(db.or_(Category.id.in_(ids), Category.name.in_(names)))
        rows = query.order_by(db.func.random()).limit(count).all()
        return [row.to_snapshot() for row in rows]
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise QuestionSupplyError('Could not load questions. Please try again.') from exc
