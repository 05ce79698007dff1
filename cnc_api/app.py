import logging
import os
import time
import click
from flask import Flask, jsonify, request
from flask.cli import with_appcontext
from flask_cors import CORS
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException
from .extensions import db, migrate, mail
from .config import Config
from .auth import issue_token
from .errors import ApiError
from .http import jerror
from .blueprints.availability import bp as availability_bp
from .blueprints.reservations import bp as reservations_bp
from .models import ROLE_ADMIN, ROLE_PARTNER, Availability, Reservation, TimeSlot, User


def create_app(config_object=None):
    app = Flask(__name__)
    app.config.from_object(config_object or Config)

    CORS(app, origins=app.config["CORS_ORIGINS"])

    db.init_app(app)
    migrate.init_app(app, db)
    mail.init_app(app)

    app.register_blueprint(availability_bp, url_prefix="/api/availability")
    app.register_blueprint(reservations_bp, url_prefix="/api/reservations")

    debug_mode = os.getenv("DEBUG_MODE", "false").lower() == "true"
    log_level = logging.DEBUG if debug_mode else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    app.logger.setLevel(log_level)

    @app.before_request
    def before_request():
        request.start_time = time.time()

    @app.after_request
    def after_request(response):
        if hasattr(request, "start_time"):
            elapsed = (time.time() - request.start_time) * 1000
            if elapsed > 500:
                app.logger.warning(
                    f"SLOW REQUEST: {request.method} {request.path} "
                    f"took {elapsed:.2f}ms - Status: {response.status_code}"
                )
            elif debug_mode:
                app.logger.debug(f"{request.method} {request.path} took {elapsed:.2f}ms - Status: {response.status_code}")
        return response

    @app.errorhandler(ApiError)
    def handle_api_error(e: ApiError):
        db.session.rollback()
        return jerror(e.status, e.code, e.message, e.details)

    @app.errorhandler(ValidationError)
    def handle_validation_error(e: ValidationError):
        db.session.rollback()
        return jerror(422, "VALIDATION_ERROR", "Invalid input.",
                      details=e.errors(include_url=False, include_context=False, include_input=False))

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(e: IntegrityError):
        db.session.rollback()
        app.logger.warning(f"Integrity error: {e.orig}")
        return jerror(409, "CONFLICT", "Just booked out or changed. Refresh and try again.")

    @app.errorhandler(Exception)
    def handle_exception(e):
        if isinstance(e, HTTPException):
            return jerror(e.code, e.name.upper().replace(" ", "_"), e.description)
        db.session.rollback()
        app.logger.error(f"Unhandled exception: {e}", exc_info=True)
        return jerror(500, "INTERNAL_ERROR", "Server error. Try again later.")

    @app.get("/health")
    def health():
        return jsonify(status="ok")

    @click.command("seed")
    @with_appcontext
    def seed_command():
        """Creates a demo partner and admin and prints their bearer tokens."""
        db.session.query(Reservation).delete()
        db.session.query(TimeSlot).delete()
        db.session.query(Availability).delete()
        db.session.query(User).delete()
        db.session.commit()
        print("Cleared existing data.")

        partner = User(
            role=ROLE_PARTNER,
            full_name="Demo Partner",
            restaurant_name="Casa Demo",
            email="partner@example.com",
            phone="123-555-0100",
            approved=True,
        )
        admin = User(role=ROLE_ADMIN, full_name="Demo Admin", email="admin@example.com", approved=True)
        db.session.add_all([partner, admin])
        db.session.commit()

        print(f"Partner {partner.id} token: {issue_token(partner)}")
        print(f"Admin {admin.id} token: {issue_token(admin)}")
        print("Database seeded!")

    @click.command("issue-token")
    @click.argument("user_id", type=int)
    @with_appcontext
    def issue_token_command(user_id):
        """Prints a bearer token for an existing user."""
        user = db.session.get(User, user_id)
        if user is None:
            raise click.ClickException(f"User {user_id} not found.")
        click.echo(issue_token(user))

    app.cli.add_command(seed_command)
    app.cli.add_command(issue_token_command)

    return app
