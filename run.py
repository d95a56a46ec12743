"""Local development entry point.

Usage:
    python run.py

Reads .env first, so GEMINI_API_KEY, STRIPE_* and WORKER_URL can live
there during development.
"""

from dotenv import load_dotenv

load_dotenv()  # Load .env before anything else

from onepage import create_app

app = create_app()

if __name__ == "__main__":
    app.run(debug=True, host="0.0.0.0", port=5001)
