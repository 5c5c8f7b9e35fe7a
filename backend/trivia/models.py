from datetime import datetime

from trivia import db
from trivia.services.games.session import QuestionSnapshot


class Category(db.Model):
    __tablename__ = 'category'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), unique=True, nullable=False)
    questions = db.relationship('Question', back_populates='category', cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
        }


class Question(db.Model):
    __tablename__ = 'question'
    __table_args__ = (
        db.CheckConstraint("correct_option IN ('A','B','C','D')", name='ck_question_correct_option'),
        db.CheckConstraint("difficulty IN ('easy','medium','hard')", name='ck_question_difficulty'),
    )
    id = db.Column(db.Integer, primary_key=True)
    category_id = db.Column(db.Integer, db.ForeignKey('category.id', ondelete='CASCADE'), nullable=False, index=True)
    question_text = db.Column(db.Text, nullable=False)
    option_a = db.Column(db.Text, nullable=False)
    option_b = db.Column(db.Text, nullable=False)
    option_c = db.Column(db.Text, nullable=False)
    option_d = db.Column(db.Text, nullable=False)
    correct_option = db.Column(db.String(1), nullable=False)
    difficulty = db.Column(db.String(16), nullable=False, default='medium', index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    category = db.relationship('Category', back_populates='questions')

    def to_snapshot(self) -> QuestionSnapshot:
        """Freeze this row into the immutable form a room plays with."""
        return QuestionSnapshot(
            text=self.question_text,
            options={
                'A': self.option_a,
                'B': self.option_b,
                'C': self.option_c,
                'D': self.option_d,
            },
            correct_option=self.correct_option,
            difficulty=self.difficulty,
            category=self.category.name if self.category else '',
        )
