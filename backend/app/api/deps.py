from pydantic import ValidationError

from app.core.config import get_settings
from app.core.exceptions import ConfigurationError
from app.schemas.settings import SuggestionTuning


def get_default_tuning() -> SuggestionTuning:
    """Per-request suggestion defaults built from the environment."""
    try:
        return SuggestionTuning.from_settings(get_settings())
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid suggestion defaults in settings: {exc.errors()[0]['msg']}") from exc
