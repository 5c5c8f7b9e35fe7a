"""Starter question bank loaded by ``flask seed-questions``."""

from trivia import db
from trivia.models import Category, Question

# (category, question, A, B, C, D, correct, difficulty)
STARTER_QUESTIONS = [
    ('Classic Horror', 'What year was the original "Halloween" released?',
     '1974', '1978', '1980', '1982', 'B', 'easy'),
    ('Classic Horror', 'What is the name of the hotel in "The Shining"?',
     'The Blackwood Hotel', 'The Stanley Hotel', 'The Overlook Hotel', 'The Bates Motel', 'C', 'easy'),
    ('Classic Horror', 'In "The Exorcist", what is the name of the possessed girl?',
     'Carrie', 'Regan', 'Samara', 'Tiffany', 'B', 'easy'),
    ('Classic Horror', 'In "Jaws", what is the name of the shark-hunting boat?',
     'The Pequod', 'The Jenny', 'The Orca', 'The Black Pearl', 'C', 'medium'),
    ('Slasher Films', 'What is the name of the summer camp in "Friday the 13th"?',
     'Camp Blackfoot', 'Camp Nightwing', 'Camp Crystal Lake', 'Camp Redwood', 'C', 'easy'),
    ('Slasher Films', "What is Freddy Krueger's signature weapon?",
     'A machete', 'A chainsaw', 'A bladed glove', 'A meat hook', 'C', 'easy'),
    ('Slasher Films', 'In "The Texas Chain Saw Massacre" (1974), what is Leatherface\'s real family name?',
     'Sawyer', 'Hewitt', 'Voorhees', 'Myers', 'A', 'hard'),
    ('Supernatural', 'In "The Ring", how many days do you have to live after watching the cursed videotape?',
     '3 days', '5 days', '7 days', '10 days', 'C', 'easy'),
    ('Supernatural', 'What is the name of the demon in "Insidious"?',
     'Pazuzu', 'The Lipstick-Face Demon', 'Valak', 'Bagul', 'B', 'hard'),
    ('Supernatural', 'In "Poltergeist" (1982), what does Carol Anne say to announce the spirits?',
     "They're here.", 'I see dead people.', "It's coming.", "Don't go in there.", 'A', 'medium'),
    ('Zombies & Creatures', 'What 1968 film is credited with creating the modern zombie genre?',
     'White Zombie', 'Dawn of the Dead', 'Night of the Living Dead', 'I Walked with a Zombie', 'C', 'medium'),
    ('Zombies & Creatures', 'What is the name of the creature in "Alien" (1979)?',
     'Predator', 'Xenomorph', 'Necromorph', 'Demogorgon', 'B', 'easy'),
    ('Zombies & Creatures', 'In "The Thing" (1982), where is the research station located?',
     'The Arctic', 'Siberia', 'Antarctica', 'Alaska', 'C', 'medium'),
]


def seed_questions(rows=STARTER_QUESTIONS) -> int:
    """Insert any starter questions not already present. Returns how many were added."""
    categories = {c.name: c for c in Category.query.all()}
    existing = {q.question_text for q in Question.query.all()}
    added = 0
    for category_name, text, a, b, c, d, correct, difficulty in rows:
        if text in existing:
            continue
        category = categories.get(category_name)
        if category is None:
            category = Category(name=category_name)
            db.session.add(category)
            categories[category_name] = category
        db.session.add(Question(
            category=category,
            question_text=text,
            option_a=a,
            option_b=b,
            option_c=c,
            option_d=d,
            correct_option=correct,
            difficulty=difficulty,
        ))
        existing.add(text)
        added += 1
    db.session.commit()
    return added
