from flask import Flask, g, jsonify

from examples.azure_demo.app_config import auth


def create_app() -> Flask:
    """
    Create the demo API protected by Azure AD access tokens.

    Returns:
        Flask: Configured Flask application instance
    """
    app = Flask(__name__)
    auth.init_app(app)

    @app.get("/api/health")
    def health():
        return jsonify({"status": "ok"}), 200

    @app.get("/api/me")
    @auth.require()
    def me():
        """Return who the verified token belongs to."""
        return jsonify(
            {
                "sub": g.jwt.get("sub"),
                "name": g.jwt.get("name"),
                "tenant": g.jwt.get("tid"),
            }
        ), 200

    @app.errorhandler(401)
    def unauthorized(error):
        """Handle unauthorized access errors."""
        return jsonify(
            {
                "status": "denied",
                "message": "Access Denied - a valid Azure AD token is required",
                "reason": error.description,
                "authenticated": False,
            }
        ), 401

    @app.errorhandler(404)
    def not_found(error):
        """Handle not found errors."""
        return jsonify({"status": "error", "message": "Resource not found."}), 404

    return app


if __name__ == "__main__":
    create_app().run(port=5000)
