#!/usr/bin/env python3

"""
Unit tests for slidesplit config files, settings, and CLI overrides.
"""

# Standard Library
import os
import sys
import tempfile

# PIP3 modules
import pytest
import yaml

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
import slidesplit
from slidesplitlib.core import config

#============================================

def _write_yaml(path: str, lines: list) -> None:
	with open(path, 'w', encoding='utf-8') as handle:
		handle.write("\n".join(lines))
		handle.write("\n")
	return

#============================================

def test_default_config_round_trip() -> None:
	with tempfile.TemporaryDirectory() as temp_dir:
		config_path = os.path.join(temp_dir, "slides.config.yaml")
		config.write_config_file(config_path, config.default_config())
		loaded = config.load_config(config_path)
	settings = config.build_settings(loaded, config_path)
	assert settings == config.build_settings(None, "<defaults>")
	assert settings['fps'] == 2.0
	assert settings['threshold'] == 10
	assert settings['min_stable_seconds'] == 1.0
	assert settings['format'] == 'png'
	assert settings['fingerprint'] == 'gradient'
	assert settings['ffmpeg_bin'] is None
	assert settings['report'] is True

#============================================

def test_partial_config_keeps_defaults() -> None:
	with tempfile.TemporaryDirectory() as temp_dir:
		config_path = os.path.join(temp_dir, "partial.yaml")
		lines = []
		lines.append("slidesplit: 1")
		lines.append("settings:")
		lines.append("  clustering:")
		lines.append("    threshold: \"6\"")
		lines.append("  output:")
		lines.append("    format: WEBP")
		lines.append("    webp_lossless: yes")
		_write_yaml(config_path, lines)
		settings = config.build_settings(config.load_config(config_path), config_path)
	assert settings['threshold'] == 6
	assert settings['format'] == 'webp'
	assert settings['webp_lossless'] is True
	assert settings['fps'] == 2.0
	assert settings['workers'] == 4

#============================================

def test_missing_header_raises() -> None:
	with tempfile.TemporaryDirectory() as temp_dir:
		config_path = os.path.join(temp_dir, "bad.yaml")
		_write_yaml(config_path, ["settings: {}"])
		with pytest.raises(RuntimeError):
			config.load_config(config_path)

#============================================

@pytest.mark.parametrize('section, key, value', [
	('sampling', 'fps', 'fast'),
	('clustering', 'threshold', 7.5),
	('clustering', 'fingerprint', 'average'),
	('output', 'format', 'gif'),
	('output', 'report', 'maybe'),
])
def test_bad_values_raise(section: str, key: str, value) -> None:
	raw = {'slidesplit': 1, 'settings': {section: {key: value}}}
	with pytest.raises(RuntimeError):
		config.build_settings(raw, "test.yaml")

#============================================

def test_written_config_is_valid_yaml() -> None:
	raw = config.default_config()
	raw['settings']['runtime']['ffmpeg_bin'] = "/opt/ffmpeg/bin/ffmpeg"
	data = yaml.safe_load(config.build_config_text(raw))
	assert data['slidesplit'] == 1
	assert data['settings']['runtime']['ffmpeg_bin'] == "/opt/ffmpeg/bin/ffmpeg"
	assert data['settings']['output']['webp_lossless'] is False

#============================================

def test_default_out_dir() -> None:
	assert config.default_out_dir("/videos/lecture 01.mp4") == "lecture 01_slides"
	assert config.default_out_dir("talk") == "talk_slides"

#============================================

def test_apply_overrides_skips_none() -> None:
	settings = config.build_settings(None, "<defaults>")
	merged = config.apply_overrides(settings, {
		'input_file': "talk.mp4",
		'fps': 4.0,
		'threshold': None,
	})
	assert merged['fps'] == 4.0
	assert merged['threshold'] == 10
	assert merged['out_dir'] == "talk_slides"
	with pytest.raises(RuntimeError):
		config.apply_overrides(settings, {'speed': 2.0})

#============================================

def test_validate_settings() -> None:
	with tempfile.TemporaryDirectory() as temp_dir:
		input_file = os.path.join(temp_dir, "talk.mp4")
		with open(input_file, 'wb') as handle:
			handle.write(b"")
		settings = config.apply_overrides(config.build_settings(None, "<defaults>"),
			{'input_file': input_file})
		config.validate_settings(settings)
		for key, value in (('fps', 0.0), ('threshold', 65), ('threshold', -1),
			('min_stable_seconds', -0.5), ('workers', 0)):
			broken = dict(settings)
			broken[key] = value
			with pytest.raises(RuntimeError):
				config.validate_settings(broken)
		missing = dict(settings)
		missing['input_file'] = os.path.join(temp_dir, "missing.mp4")
		with pytest.raises(RuntimeError):
			config.validate_settings(missing)

#============================================

@pytest.mark.parametrize('image_format, webp_lossless, expected', [
	('png', False, True),
	('tiff', False, True),
	('bmp', False, True),
	('webp', True, True),
	('webp', False, False),
	('jpg', False, False),
	('jpeg', True, False),
])
def test_is_lossless_output(image_format: str, webp_lossless: bool, expected: bool) -> None:
	settings = config.apply_overrides(config.build_settings(None, "<defaults>"),
		{'format': image_format, 'webp_lossless': webp_lossless})
	assert config.is_lossless_output(settings) is expected

#============================================

def test_cli_overrides_config_file() -> None:
	with tempfile.TemporaryDirectory() as temp_dir:
		config_path = os.path.join(temp_dir, "run.yaml")
		_write_yaml(config_path, [
			"slidesplit: 1",
			"settings:",
			"  sampling:",
			"    fps: 1.0",
			"  clustering:",
			"    threshold: 12",
		])
		args = slidesplit.parse_args([
			"talk.mp4", "-c", config_path, "--threshold", "8",
			"--format", "jpg", "--no-report", "-k",
		])
		settings = slidesplit.build_run_settings(args)
	assert settings['fps'] == 1.0
	assert settings['threshold'] == 8
	assert settings['format'] == 'jpg'
	assert settings['report'] is False
	assert settings['keep_temp'] is True
	assert settings['webp_lossless'] is False
	assert settings['out_dir'] == "talk_slides"

#============================================

def test_cli_writes_default_config() -> None:
	with tempfile.TemporaryDirectory() as temp_dir:
		input_file = os.path.join(temp_dir, "talk.mp4")
		slidesplit.main([input_file, "--write-default-config", "-q"])
		config_path = config.default_config_path(input_file)
		assert os.path.isfile(config_path)
		loaded = config.load_config(config_path)
	assert config.build_settings(loaded, config_path)['threshold'] == 10
