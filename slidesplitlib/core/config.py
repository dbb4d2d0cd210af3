#!/usr/bin/env python3

"""
slidesplit config files and run settings.

Config files are YAML with a 'slidesplit: 1' header and a 'settings'
mapping. Settings are flattened into a dict, then command-line overrides
are applied, then the result is validated before any work starts.
"""

# Standard Library
import os

# PIP3 modules
import yaml

# local repo modules
from slidesplitlib.core import fingerprint

#============================================

CONFIG_HEADER_KEY = "slidesplit"
CONFIG_HEADER_VALUE = 1

# output format name -> file extension
OUTPUT_FORMATS = {
	'png': 'png',
	'webp': 'webp',
	'tiff': 'tiff',
	'bmp': 'bmp',
	'jpg': 'jpg',
	'jpeg': 'jpg',
}
LOSSLESS_FORMATS = ('png', 'tiff', 'bmp')

#============================================

def coerce_bool(value, config_path: str, key_path: str) -> bool:
	"""
	Coerce a value to bool.

	Args:
		value: Raw value.
		config_path: Config file path.
		key_path: Key path string.

	Returns:
		bool: Coerced boolean.
	"""
	if isinstance(value, bool):
		return value
	if isinstance(value, int):
		return bool(value)
	if isinstance(value, str):
		normalized = value.strip().lower()
		if normalized in ("true", "yes", "1", "on"):
			return True
		if normalized in ("false", "no", "0", "off"):
			return False
	raise RuntimeError(f"config {config_path}: {key_path} must be a boolean")

#============================================

def coerce_float(value, config_path: str, key_path: str) -> float:
	if isinstance(value, bool):
		raise RuntimeError(f"config {config_path}: {key_path} must be a number")
	if isinstance(value, (int, float)):
		return float(value)
	if isinstance(value, str):
		try:
			return float(value)
		except ValueError:
			pass
	raise RuntimeError(f"config {config_path}: {key_path} must be a number")

#============================================

def coerce_int(value, config_path: str, key_path: str) -> int:
	if isinstance(value, bool):
		raise RuntimeError(f"config {config_path}: {key_path} must be an integer")
	if isinstance(value, int):
		return value
	if isinstance(value, float) and value.is_integer():
		return int(value)
	if isinstance(value, str):
		try:
			return int(value.strip())
		except ValueError:
			pass
	raise RuntimeError(f"config {config_path}: {key_path} must be an integer")

#============================================

def coerce_choice(value, choices, config_path: str, key_path: str) -> str:
	text = str(value).strip().lower()
	if text not in choices:
		raise RuntimeError(
			f"config {config_path}: {key_path} must be one of: {', '.join(choices)}"
		)
	return text

#============================================

def default_config() -> dict:
	"""
	Build the default config dictionary.

	Returns:
		dict: Default configuration values.
	"""
	return {
		CONFIG_HEADER_KEY: CONFIG_HEADER_VALUE,
		'settings': {
			'sampling': {
				'fps': 2.0,
			},
			'clustering': {
				'threshold': 10,
				'min_stable_seconds': 1.0,
				'fingerprint': fingerprint.DEFAULT_ALGORITHM,
			},
			'output': {
				'format': 'png',
				'webp_lossless': False,
				'report': True,
			},
			'runtime': {
				'workers': 4,
				'ffmpeg_bin': None,
			},
		},
	}

#============================================

def default_config_path(input_file: str) -> str:
	return f"{input_file}.slidesplit.config.yaml"

#============================================

def default_out_dir(input_file: str) -> str:
	"""
	Default output directory, '<input stem>_slides' in the working directory.
	"""
	stem = os.path.splitext(os.path.basename(input_file))[0]
	if stem == "":
		stem = "output"
	return f"{stem}_slides"

#============================================

def build_config_text(config: dict) -> str:
	"""
	Build YAML text for the config file.

	Args:
		config: Config dictionary.

	Returns:
		str: YAML content.
	"""
	defaults = default_config()['settings']
	settings = config.get('settings', {})
	sampling = settings.get('sampling', {})
	clustering = settings.get('clustering', {})
	output = settings.get('output', {})
	runtime = settings.get('runtime', {})
	ffmpeg_bin = runtime.get('ffmpeg_bin', defaults['runtime']['ffmpeg_bin'])
	lines = []
	lines.append(f"{CONFIG_HEADER_KEY}: {CONFIG_HEADER_VALUE}")
	lines.append("settings:")
	lines.append("  sampling:")
	lines.append(f"    fps: {sampling.get('fps', defaults['sampling']['fps'])}")
	lines.append("  clustering:")
	lines.append(
		f"    threshold: {clustering.get('threshold', defaults['clustering']['threshold'])}"
	)
	lines.append(
		"    min_stable_seconds: "
		f"{clustering.get('min_stable_seconds', defaults['clustering']['min_stable_seconds'])}"
	)
	lines.append(
		f"    fingerprint: {clustering.get('fingerprint', defaults['clustering']['fingerprint'])}"
	)
	lines.append("  output:")
	lines.append(f"    format: {output.get('format', defaults['output']['format'])}")
	webp_lossless = output.get('webp_lossless', defaults['output']['webp_lossless'])
	lines.append(f"    webp_lossless: {str(bool(webp_lossless)).lower()}")
	report = output.get('report', defaults['output']['report'])
	lines.append(f"    report: {str(bool(report)).lower()}")
	lines.append("  runtime:")
	lines.append(f"    workers: {runtime.get('workers', defaults['runtime']['workers'])}")
	if ffmpeg_bin is None:
		lines.append("    ffmpeg_bin: null")
	else:
		lines.append(f"    ffmpeg_bin: \"{ffmpeg_bin}\"")
	lines.append("")
	return "\n".join(lines)

#============================================

def write_config_file(config_path: str, config: dict) -> None:
	text = build_config_text(config)
	os.makedirs(os.path.dirname(config_path) or '.', exist_ok=True)
	with open(config_path, 'w', encoding='utf-8') as handle:
		handle.write(text)
	return

#============================================

def load_config(config_path: str) -> dict:
	"""
	Load a config file from disk.

	Args:
		config_path: Config file path.

	Returns:
		dict: Parsed config dictionary.
	"""
	if not os.path.isfile(config_path):
		raise RuntimeError(f"config file not found: {config_path}")
	with open(config_path, 'r', encoding='utf-8') as handle:
		data = yaml.safe_load(handle)
	if not isinstance(data, dict):
		raise RuntimeError("config file must be a mapping")
	if data.get(CONFIG_HEADER_KEY) != CONFIG_HEADER_VALUE:
		raise RuntimeError(
			f"config file must set {CONFIG_HEADER_KEY}: {CONFIG_HEADER_VALUE}"
		)
	return data

#============================================

def _section(overrides: dict, name: str, config_path: str) -> dict:
	section = overrides.get(name)
	if section is None:
		return {}
	if not isinstance(section, dict):
		raise RuntimeError(f"config {config_path}: settings.{name} must be a mapping")
	return section

#============================================

def build_settings(config: dict | None, config_path: str) -> dict:
	"""
	Normalize settings with defaults.

	Args:
		config: Raw config dictionary, or None for defaults only.
		config_path: Config file path, used in error messages.

	Returns:
		dict: Flat settings dictionary.
	"""
	defaults = default_config()['settings']
	overrides = {}
	if isinstance(config, dict):
		overrides = config.get('settings') or {}
	if not isinstance(overrides, dict):
		raise RuntimeError(f"config {config_path}: settings must be a mapping")
	sampling = _section(overrides, 'sampling', config_path)
	clustering = _section(overrides, 'clustering', config_path)
	output = _section(overrides, 'output', config_path)
	runtime = _section(overrides, 'runtime', config_path)
	fps = coerce_float(sampling.get('fps', defaults['sampling']['fps']),
		config_path, "settings.sampling.fps")
	threshold = coerce_int(clustering.get('threshold',
		defaults['clustering']['threshold']), config_path,
		"settings.clustering.threshold")
	min_stable_seconds = coerce_float(clustering.get('min_stable_seconds',
		defaults['clustering']['min_stable_seconds']), config_path,
		"settings.clustering.min_stable_seconds")
	algorithm = coerce_choice(clustering.get('fingerprint',
		defaults['clustering']['fingerprint']), fingerprint.ALGORITHMS,
		config_path, "settings.clustering.fingerprint")
	image_format = coerce_choice(output.get('format', defaults['output']['format']),
		tuple(OUTPUT_FORMATS.keys()), config_path, "settings.output.format")
	webp_lossless = coerce_bool(output.get('webp_lossless',
		defaults['output']['webp_lossless']), config_path,
		"settings.output.webp_lossless")
	report = coerce_bool(output.get('report', defaults['output']['report']),
		config_path, "settings.output.report")
	workers = coerce_int(runtime.get('workers', defaults['runtime']['workers']),
		config_path, "settings.runtime.workers")
	ffmpeg_bin = runtime.get('ffmpeg_bin', defaults['runtime']['ffmpeg_bin'])
	if ffmpeg_bin is not None and not isinstance(ffmpeg_bin, str):
		raise RuntimeError(f"config {config_path}: settings.runtime.ffmpeg_bin must be a string")
	return {
		'input_file': None,
		'out_dir': None,
		'cache_dir': None,
		'keep_temp': False,
		'fps': fps,
		'threshold': threshold,
		'min_stable_seconds': min_stable_seconds,
		'fingerprint': algorithm,
		'format': image_format,
		'webp_lossless': webp_lossless,
		'report': report,
		'workers': workers,
		'ffmpeg_bin': ffmpeg_bin,
	}

#============================================

def apply_overrides(settings: dict, overrides: dict) -> dict:
	"""
	Apply command-line values on top of settings.

	Keys with a None value are left alone.
	"""
	merged = dict(settings)
	for key, value in overrides.items():
		if value is None:
			continue
		if key not in merged:
			raise RuntimeError(f"unknown setting: {key}")
		merged[key] = value
	if merged['out_dir'] is None and merged['input_file'] is not None:
		merged['out_dir'] = default_out_dir(merged['input_file'])
	return merged

#============================================

def is_lossless_output(settings: dict) -> bool:
	"""
	True when slide images are written without lossy compression.
	"""
	if settings['format'] in LOSSLESS_FORMATS:
		return True
	return settings['format'] == 'webp' and settings['webp_lossless']

#============================================

def validate_settings(settings: dict) -> None:
	"""
	Check run preconditions; raises RuntimeError on the first problem.
	"""
	if settings.get('input_file') is None:
		raise RuntimeError("input file is required")
	if not os.path.isfile(settings['input_file']):
		raise RuntimeError(f"file not found: {settings['input_file']}")
	if settings['fps'] <= 0:
		raise RuntimeError(f"fps must be positive, got: {settings['fps']}")
	if settings['threshold'] < 0 or settings['threshold'] > fingerprint.FINGERPRINT_BITS:
		raise RuntimeError(
			f"threshold must be 0..{fingerprint.FINGERPRINT_BITS}, got: {settings['threshold']}"
		)
	if settings['min_stable_seconds'] < 0:
		raise RuntimeError(
			f"min_stable_seconds must be non-negative, got: {settings['min_stable_seconds']}"
		)
	if settings['workers'] < 1:
		raise RuntimeError(f"workers must be at least 1, got: {settings['workers']}")
	if settings['format'] not in OUTPUT_FORMATS:
		raise RuntimeError(f"unknown output format: {settings['format']}")
	if settings['fingerprint'] not in fingerprint.ALGORITHMS:
		raise RuntimeError(f"unknown fingerprint algorithm: {settings['fingerprint']}")
	return
