"""Environment-driven settings."""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_CHAT_MODEL = "gemini-2.5-flash"
DEFAULT_STATE_DIR = Path("storage") / "state"


@dataclass
class Settings:
    """Runtime configuration. Call `load_dotenv()` before `from_env()`."""
    google_api_key: Optional[str] = None
    google_client_id: Optional[str] = None
    google_access_token: Optional[str] = None
    chat_model: str = DEFAULT_CHAT_MODEL
    state_dir: Path = DEFAULT_STATE_DIR

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            google_api_key=os.getenv("GOOGLE_API_KEY") or None,
            google_client_id=os.getenv("GOOGLE_CLIENT_ID") or None,
            google_access_token=os.getenv("GOOGLE_ACCESS_TOKEN") or None,
            chat_model=os.getenv("CHAT_MODEL", DEFAULT_CHAT_MODEL),
            state_dir=Path(os.getenv("SKILLSAGE_STATE_DIR", str(DEFAULT_STATE_DIR))),
        )
