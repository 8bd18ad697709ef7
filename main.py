import sys

from config.config import Config
from sgbm_tuner.disparity import DisparityEngine
from sgbm_tuner.display_mapper import DisplayMapper
from sgbm_tuner.gui import TunerWindow
from sgbm_tuner.tuner import TunerSession
from utils.logger_config import LoggerConfig


def load_config(config_path: str) -> Config:
    """
    Load configuration from a JSON file.

    Args:
        config_path (str): Path to the configuration JSON file.

    Returns:
        Config: Loaded configuration object.
    """
    return Config(config_path)


def create_session(config: Config) -> TunerSession:
    """
    Build a tuner session from the configuration.

    Args:
        config (Config): Configuration object containing tuner settings.
    """
    display = config.get_display_options()
    return TunerSession(
        params=config.create_parameter_set(),
        engine=DisparityEngine(backend=config.backend),
        mapper=DisplayMapper(replicate_channels=display["replicate_channels"],
                             exclude_invalid=display["exclude_invalid"])
    )


def main() -> None:
    """
    Main function to start the interactive SGBM tuner.
    """
    config_file = sys.argv[1] if len(sys.argv) > 1 else "config/config_sgbm_tuner.json"

    config = load_config(config_file)
    LoggerConfig.configure_from(config)

    window = TunerWindow(
        create_session(config),
        window_name=config.window_name,
        colormap=config.get_colormap(),
        result_folder_factory=config.ensure_result_folder
    )
    window.run(config.left_image, config.right_image)


if __name__ == "__main__":
    main()
