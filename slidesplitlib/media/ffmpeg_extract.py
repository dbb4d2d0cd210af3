#!/usr/bin/env python3

import os
from slidesplitlib.core import config
from slidesplitlib.core import utils

#============================================

FRAME_PATTERN = "frame_%06d"
# number written on the file of the first sampled frame
FIRST_FRAME_NUMBER = 1

#============================================

def find_ffmpeg(ffmpeg_bin: str | None = None) -> str:
	"""
	Resolve the ffmpeg executable.

	Args:
		ffmpeg_bin: Explicit executable path or name, or None for PATH lookup.

	Returns:
		str: Executable path.
	"""
	if ffmpeg_bin is None:
		ffmpeg_bin = "ffmpeg"
	found = utils.check_dependency(ffmpeg_bin)
	utils.debug(f"using ffmpeg: {found}")
	return found

#============================================

def frame_pattern(frames_dir: str, image_format: str) -> str:
	ext = config.OUTPUT_FORMATS[image_format]
	return os.path.join(frames_dir, f"{FRAME_PATTERN}.{ext}")

#============================================

def format_flags(image_format: str, webp_lossless: bool = False) -> list:
	"""
	Encoder options for the extracted frame images.
	"""
	if image_format == 'png':
		return ["-compression_level", "12"]
	if image_format == 'webp':
		if webp_lossless:
			return ["-lossless", "1"]
		return []
	if image_format == 'tiff':
		return ["-compression_algo", "lzw"]
	if image_format in ('jpg', 'jpeg'):
		return ["-qscale:v", "2"]
	# bmp is lossless without options
	return []

#============================================

def build_extract_command(ffmpeg_bin: str, input_file: str, pattern: str,
	fps: float, image_format: str, webp_lossless: bool = False) -> list:
	cmd = [
		ffmpeg_bin, "-hide_banner", "-loglevel", "error",
		"-i", input_file,
		"-vf", f"fps={fps}",
		"-vsync", "vfr",
	]
	cmd += format_flags(image_format, webp_lossless)
	cmd += ["-start_number", str(FIRST_FRAME_NUMBER)]
	cmd.append(pattern)
	return cmd

#============================================

def extract_frames(input_file: str, frames_dir: str, fps: float,
	image_format: str = 'png', webp_lossless: bool = False,
	ffmpeg_bin: str = "ffmpeg") -> str:
	"""
	Sample frames from a video into numbered image files.

	Args:
		input_file: Video file path.
		frames_dir: Output directory for frame_NNNNNN.<ext> files.
		fps: Sampling rate.
		image_format: Output image format name.
		webp_lossless: Lossless encoding for webp.
		ffmpeg_bin: ffmpeg executable.

	Returns:
		str: The frames directory.
	"""
	utils.ensure_file_exists(input_file)
	os.makedirs(frames_dir, exist_ok=True)
	utils.info(f"Extracting frames at {fps} fps to {frames_dir}")
	pattern = frame_pattern(frames_dir, image_format)
	cmd = build_extract_command(ffmpeg_bin, input_file, pattern, fps,
		image_format, webp_lossless)
	utils.run_process(cmd, capture_output=True)
	return frames_dir
