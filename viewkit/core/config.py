from typing import Any
import json
import os
from pydantic import BaseModel, Field, ValidationError
from loguru import logger
from .events import ObserverEvent

# --- Settings Models ---
class GeneralSettings(BaseModel):
    debug_mode: bool = True
    log_dir: str = "logs"
    log_to_file: bool = True

class BindingSettings(BaseModel):
    errors_list_selector: str = "div.errors"
    error_class: str = "error"
    upload_enctype: str = "multipart/form-data"

class DispatchSettings(BaseModel):
    default_render_yield: str = "main"
    auto_scroll_to_hash: bool = True
    # Controllers must declare routing_key; class names are not stable across builds
    require_routing_key: bool = False

class AppConfig(BaseModel):
    general: GeneralSettings = Field(default_factory=GeneralSettings)
    binding: BindingSettings = Field(default_factory=BindingSettings)
    dispatch: DispatchSettings = Field(default_factory=DispatchSettings)

# --- Manager ---
class ConfigManager:
    """
    Manages application configuration with persistence and reactivity.

    Pass ``filepath=None`` for an in-memory configuration that is never saved.
    """
    def __init__(self, filepath: str = "viewkit.json"):
        self.filepath = filepath
        self._data = AppConfig()
        self.on_changed = ObserverEvent("ConfigChanged")
        self._load()

    @property
    def data(self) -> AppConfig:
        return self._data

    def update(self, section: str, key: str, value: Any):
        """Update a setting, validate via Pydantic, autosave, and emit change event."""
        if not hasattr(self._data, section):
            raise ValueError(f"Invalid section: {section}")
        
        section_obj = getattr(self._data, section)
        if key not in type(section_obj).model_fields:
             raise ValueError(f"Invalid key: {key} in section {section}")

        candidate = section_obj.model_dump()
        candidate[key] = value
        try:
            validated = type(section_obj).model_validate(candidate)
        except ValidationError as e:
            raise ValueError(f"Invalid value for {section}.{key}: {value!r}") from e

        setattr(self._data, section, validated)
        self._save()
        self.on_changed.emit(section, key, getattr(validated, key))

    def get(self, section: str, key: str) -> Any:
        section_obj = getattr(self._data, section)
        return getattr(section_obj, key)

    def _load(self):
        """Load settings from JSON or TOML file if present; otherwise keep defaults."""
        if self.filepath is None:
            return
        if os.path.isfile(self.filepath):
            try:
                if self.filepath.endswith('.toml'):
                    import tomllib
                    with open(self.filepath, "rb") as f:
                        raw = tomllib.load(f)
                else:
                    with open(self.filepath, "r", encoding="utf-8") as f:
                        raw = json.load(f)
                self._data = AppConfig.model_validate(raw)
            except (OSError, ValueError, ValidationError) as e:
                logger.error(f"Failed to load config from {self.filepath}: {e}")
                self._save()
        else:
            self._save()

    def _save(self):
        """Persist current config to JSON file."""
        if self.filepath is None or self.filepath.endswith('.toml'):
            return
        try:
            dirname = os.path.dirname(self.filepath)
            if dirname:
                os.makedirs(dirname, exist_ok=True)
            with open(self.filepath, "w", encoding="utf-8") as f:
                json.dump(self._data.model_dump(), f, indent=4)
        except OSError as e:
            logger.error(f"Failed to save config to {self.filepath}: {e}")
