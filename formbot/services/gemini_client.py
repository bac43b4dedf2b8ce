"""Gemini API client initialization.

Uses the google-genai SDK (not google.generativeai).
"""

from google import genai

from formbot.config import get_settings


def get_gemini_client() -> genai.Client:
    """Initialize and return a Gemini API client.

    The client reads the GEMINI_API_KEY from the application settings.
    Settings validation ensures the API key is present before a batch starts.

    Returns:
        genai.Client: Initialized Gemini client ready for API calls.

    Raises:
        ValueError: If GEMINI_API_KEY is not set in environment.

    Example:
        >>> client = get_gemini_client()
        >>> uploaded = client.files.upload(file="form.pdf")
    """
    settings = get_settings()
    return genai.Client(api_key=settings.gemini_api_key)
