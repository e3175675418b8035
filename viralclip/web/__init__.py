"""Flask application factory for the viralclip HTTP API."""

import tempfile
from pathlib import Path

from flask import Flask, jsonify


def create_app(work_dir: Path | None = None, oracle=None) -> Flask:
    """Build the app.

    *oracle* is the optional AI collaborator (``propose_segments`` /
    ``transcribe``); without one, uploads are tiled uniformly and subtitles
    come from the speech engine only.
    """
    app = Flask(__name__)
    app.config["WORK_DIR"] = work_dir or Path(tempfile.mkdtemp(prefix="viralclip_"))
    app.config["MAX_CONTENT_LENGTH"] = 2 * 1024 * 1024 * 1024  # 2 GB
    app.config["ORACLE"] = oracle

    from viralclip.web.routes import bp
    app.register_blueprint(bp)

    @app.errorhandler(413)
    def request_entity_too_large(error):
        return jsonify({"error": "File too large"}), 413

    return app
