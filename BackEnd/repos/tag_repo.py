from BackEnd.core.log import get_logger
from BackEnd.core.models import Tag
from BackEnd.core.paths import tags_path
from BackEnd.repos.filestore import read_json, write_json

logger = get_logger(__name__)

def load_tags(data_dir=None):
	"""Return stored tags, or [] when tags.json is missing or unreadable."""
	path = tags_path(data_dir)
	data = read_json(path)
	if not isinstance(data, dict):
		if data is not None:
			logger.warning("Unexpected content in %s, ignoring", path)
		return []
	tags = []
	for item in data.get("tags") or []:
		try:
			tags.append(Tag.from_dict(item))
		except (KeyError, TypeError, ValueError) as e:
			logger.warning("Skipping bad tag entry in %s: %s", path, e)
	return tags

def save_tags(tags, data_dir=None):
	write_json(tags_path(data_dir), {"tags": [t.to_dict() for t in tags]})
