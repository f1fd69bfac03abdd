from BackEnd.core.log import get_logger
from BackEnd.core.models import AppSettings
from BackEnd.core.paths import settings_path
from BackEnd.repos.filestore import backup_path, read_json, write_json

logger = get_logger(__name__)

def load_settings(data_dir=None):
	"""Return stored settings. On first run the defaults are written out before returning."""
	path = settings_path(data_dir)
	if not path.exists() and not backup_path(path).exists():
		settings = AppSettings()
		try:
			save_settings(settings, data_dir)
		except OSError as e:
			logger.warning("Could not write default settings to %s: %s", path, e)
		return settings
	data = read_json(path)
	if not isinstance(data, dict):
		return AppSettings()
	return AppSettings.from_dict(data)

def save_settings(settings, data_dir=None):
	write_json(settings_path(data_dir), settings.to_dict())
