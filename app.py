"""WSGI entry point: ``flask --app app run`` or ``gunicorn app:app``."""

from src.sunday_attendance.sunday_attendance.main import create_app

app = create_app()

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000)
