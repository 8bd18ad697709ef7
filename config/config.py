import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

import cv2

from sgbm_tuner.parameters import ParameterSet

SUPPORTED_BACKENDS = ("native", "opencv")
SUPPORTED_COLORMAPS = {
    "jet": "COLORMAP_JET",
    "turbo": "COLORMAP_TURBO",
    "inferno": "COLORMAP_INFERNO",
    "bone": "COLORMAP_BONE",
}


class Config:
    def __init__(self, config_path: str):
        self.config_path = Path(config_path)
        self.config_data = self._load_config(config_path)
        self._apply_defaults()
        self._validate_backend_config()
        self._validate_parameter_config()
        self._validate_display_config()

    def _load_config(self, config_path: str) -> Dict[str, Any]:
        with open(config_path, 'r') as config_file:
            config_data = json.load(config_file)

        self._process_path_expansion(config_data)
        return config_data

    def _process_path_expansion(self, config_data: Dict[str, Any]) -> None:
        """Expand ~ and environment variables in the image and output paths."""
        for key in ("left_image", "right_image", "save_path_result", "log_file"):
            value = config_data.get(key)
            if isinstance(value, str) and value:
                config_data[key] = os.path.expandvars(os.path.expanduser(value))

    def _apply_defaults(self) -> None:
        defaults = {
            "left_image": None,
            "right_image": None,
            "save_path_result": "sgbm_tuner",
            "log_level": "INFO",
            "log_file": None,
            "backend": "native",
            "window_name": "SGBM Tuner",
            "sgbm_parameters": {},
            "display": {},
        }
        for key, default_value in defaults.items():
            self.config_data.setdefault(key, default_value)

        display_defaults = {
            "replicate_channels": False,
            "exclude_invalid": True,
            "colormap": None,
        }
        for key, default_value in display_defaults.items():
            self.config_data["display"].setdefault(key, default_value)

    def _validate_backend_config(self) -> None:
        backend = self.config_data["backend"]
        if backend not in SUPPORTED_BACKENDS:
            raise ValueError(f"backend must be one of {SUPPORTED_BACKENDS}, got {backend!r}")

    def _validate_parameter_config(self) -> None:
        """Check that the parameter overrides are accepted by the ParameterSet setters."""
        overrides = self.config_data["sgbm_parameters"]
        if not isinstance(overrides, dict):
            raise ValueError("sgbm_parameters must be a JSON object")
        # InvalidParameter is a ValueError, so bad overrides surface like other config errors
        self.create_parameter_set()

    def _validate_display_config(self) -> None:
        colormap = self.config_data["display"]["colormap"]
        if colormap is not None and colormap not in SUPPORTED_COLORMAPS:
            raise ValueError(f"display.colormap must be one of {sorted(SUPPORTED_COLORMAPS)} or null, "
                             f"got {colormap!r}")

    def create_parameter_set(self) -> ParameterSet:
        """Build the starting ParameterSet: tuner defaults overridden by the config."""
        return ParameterSet.from_dict(self.config_data["sgbm_parameters"])

    def get_display_options(self) -> Dict[str, Any]:
        """Return a copy of the display options."""
        return dict(self.config_data["display"])

    def get_colormap(self) -> Optional[int]:
        """OpenCV colormap id for the configured false-color presentation, if any."""
        colormap = self.config_data["display"]["colormap"]
        if colormap is None:
            return None
        return getattr(cv2, SUPPORTED_COLORMAPS[colormap])

    def ensure_result_folder(self) -> Path:
        """
        Create the result folder on first use.

        A run never writes into the folder of a previous run:
        result/<name>, result/<name>(1), result/<name>(2), ...
        """
        existing = self.config_data.get("_result_folder")
        if existing is not None:
            return Path(existing)

        folder_name = self.config_data["save_path_result"]
        counter = 1
        new_path = Path("result") / folder_name
        while new_path.exists():
            new_path = Path("result") / f"{folder_name}({counter})"
            counter += 1
        new_path.mkdir(parents=True)
        self.config_data["_result_folder"] = str(new_path)
        return new_path

    def __getattr__(self, name: str) -> Any:
        # config_data may not exist yet while the object is being built
        if name != "config_data" and name in self.__dict__.get("config_data", {}):
            return self.config_data[name]
        raise AttributeError(f"'{self.__class__.__name__}' object has no attribute '{name}'")
