from unittest.mock import patch

from lbp_core.common.settings import EngineSettings
from lbp_core.main import main


def test_main_configures_and_runs():
    settings = EngineSettings(min_sale_duration=60, log_level="DEBUG")
    with patch("lbp_core.main.EngineSettings.from_env", return_value=settings) as mock_env, \
            patch("lbp_core.main.configure_logging") as mock_logging, \
            patch("lbp_core.main.create_app") as mock_create_app:
        main(["--host", "0.0.0.0", "--port", "8080", "--env-file", "lbp.env"])

    mock_env.assert_called_once_with("lbp.env")
    mock_logging.assert_called_once_with(settings)
    program = mock_create_app.call_args.args[0]
    assert program.settings is settings
    mock_create_app.return_value.run.assert_called_once_with(host="0.0.0.0", port=8080, debug=False)
