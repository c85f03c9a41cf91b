from .auth import auth_bp
from .admin import admin_bp
from .coach import coach_bp

def register_blueprints(app):
    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(coach_bp)
