from pathlib import Path

from dotenv import load_dotenv


def load_env(path: Path | None = None) -> bool:
    """Load .env from the working directory (or `path`) if present.

    Variables already set in the environment win over the file.
    Returns True when a file was loaded.
    """
    env_path = path or Path.cwd() / ".env"
    if not env_path.exists():
        return False
    return load_dotenv(dotenv_path=env_path, override=False)
