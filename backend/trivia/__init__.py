import logging
import sys
from logging import StreamHandler

import click
from flask import Flask
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
from flask_sqlalchemy import SQLAlchemy

from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    if not flask_app.debug and not flask_app.testing:
        stream_handler = StreamHandler(sys.stdout)
        stream_handler.setLevel(logging.INFO)
        flask_app.logger.addHandler(stream_handler)
        flask_app.logger.setLevel(logging.INFO)

    allowed_origins = [o.strip() for o in flask_app.config.get('CORS_ORIGINS', '').split(',') if o.strip()]

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=allowed_origins or '*')

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins or '*')

    # Models must be registered before create_all / migrations see the metadata
    from trivia import models  # noqa: F401

    from trivia.routes import main
    flask_app.register_blueprint(main)

    flask_app.extensions['trivia'] = _build_orchestrator(flask_app)

    from trivia.socketio_events import register_socketio_handlers
    register_socketio_handlers(socketio, testing=flask_app.config.get('TESTING', False))

    @click.command('seed-questions')
    @click.option('--reset', is_flag=True, help='Drop and recreate tables first.')
    def seed_questions_command(reset):
        """Creates the question tables and loads the starter question bank."""
        from trivia.seed import seed_questions
        with flask_app.app_context():
            if reset:
                db.drop_all()
            db.create_all()
            added = seed_questions()
            click.echo(f'Seeded {added} questions.')

    flask_app.cli.add_command(seed_questions_command)

    flask_app.logger.info('Trivia server ready')
    return flask_app


def _build_orchestrator(flask_app):
    from trivia.services.games.orchestrator import GameOrchestrator, SocketIOTransport
    from trivia.services.games.questions import fetch_questions
    from trivia.services.games.scheduler import TaskScheduler
    from trivia.services.games.session import GameSettings
    from trivia.services.games.store import SessionStore

    cfg = flask_app.config
    # Timers stay off in tests unless explicitly enabled
    background = not cfg.get('TESTING') or cfg.get('ENABLE_SCHEDULER_IN_TESTS')
    scheduler = TaskScheduler(
        spawn=socketio.start_background_task if background else None,
        sleep=socketio.sleep,
        logger=flask_app.logger,
    )
    store = SessionStore(
        scheduler=scheduler,
        default_settings=GameSettings(
            question_count=int(cfg.get('DEFAULT_QUESTION_COUNT', 10)),
            time_per_question=int(cfg.get('DEFAULT_TIME_PER_QUESTION_SEC', 20)),
        ),
        reconnect_grace=float(cfg.get('RECONNECT_GRACE_SEC', 60)),
        stale_after=float(cfg.get('STALE_SESSION_SEC', 1800)),
        logger=flask_app.logger,
    )
    orchestrator = GameOrchestrator(
        store=store,
        question_supply=fetch_questions,
        transport=SocketIOTransport(socketio, namespace='/ws'),
        timer_buffer=float(cfg.get('QUESTION_TIMER_BUFFER_SEC', 1)),
        nickname_max_length=int(cfg.get('NICKNAME_MAX_LENGTH', 20)),
        logger=flask_app.logger,
    )
    orchestrator.start_background_sweep(float(cfg.get('SWEEP_INTERVAL_SEC', 300)))
    return orchestrator
