from flask import Blueprint, current_app, jsonify

from trivia.models import Category
from trivia.services.games.errors import NotFound

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the trivia server!'})


@main.route('/api/categories', methods=['GET'])
def list_categories():
    """Categories a host can restrict a room to."""
    categories = Category.query.order_by(Category.name).all()
    return jsonify([c.to_dict() for c in categories])


@main.route('/api/rooms/<string:code>', methods=['GET'])
def get_room_state(code):
    try:
        state = current_app.extensions['trivia'].room_state(code)
    except NotFound as exc:
        return jsonify({'error': exc.message}), 404
    return jsonify(state)
