from flask import Flask, jsonify
from relay.routes.health import bp as health_bp
from relay.routes.notifications import bp as notifications_bp
from relay.utils.config import get_settings
from relay.utils.logger import get_logger


logger = get_logger("server")


def create_app() -> Flask:
    app = Flask(__name__)
    app.register_blueprint(health_bp)
    app.register_blueprint(notifications_bp)


    @app.get("/")
    def root():
        return jsonify({"service": "submission-relay", "status": "ok"})


    return app


if __name__ == "__main__":
    settings = get_settings()
    logger.info("Starting submission-relay on %s:%s", settings.host, settings.port)
    create_app().run(host=settings.host, port=settings.port)
