#!/usr/bin/env python3

"""
Load extracted frame images into ordered frame entries.

A frame entry is a dict with 'index' (temporal position taken from the
file name), 'path' and 'fingerprint'.
"""

# Standard Library
import concurrent.futures
import os

# PIP3 modules
from tqdm import tqdm

# local repo modules
from slidesplitlib.core import fingerprint
from slidesplitlib.core import utils

#============================================

IMAGE_EXTENSIONS = ('.png', '.webp', '.tiff', '.tif', '.bmp', '.jpg', '.jpeg')

#============================================

def parse_frame_index(filename: str) -> int | None:
	"""
	Parse the frame number from names like frame_000042.png.

	Args:
		filename: File name or path.

	Returns:
		int | None: Frame number, or None when the name has no numeric suffix.
	"""
	stem = os.path.splitext(os.path.basename(filename))[0]
	if '_' not in stem:
		return None
	suffix = stem.rsplit('_', 1)[1]
	if not suffix.isdigit():
		return None
	return int(suffix)

#============================================

def list_frame_files(frames_dir: str) -> list:
	"""
	List numbered frame images in a directory, sorted by frame number.

	Returns:
		list: (index, path) tuples.
	"""
	entries = []
	for name in os.listdir(frames_dir):
		path = os.path.join(frames_dir, name)
		if not os.path.isfile(path):
			continue
		if os.path.splitext(name)[1].lower() not in IMAGE_EXTENSIONS:
			continue
		index = parse_frame_index(name)
		if index is None:
			continue
		entries.append((index, path))
	entries.sort(key=lambda item: item[0])
	return entries

#============================================

def _fingerprint_entry(index: int, path: str, algorithm: str) -> dict:
	return {
		'index': index,
		'path': path,
		'fingerprint': fingerprint.fingerprint_file(path, algorithm),
	}

#============================================

def load_frame_entries(frames_dir: str, algorithm: str = fingerprint.DEFAULT_ALGORITHM,
	workers: int = 4) -> list:
	"""
	Fingerprint every numbered frame in a directory.

	Frames are hashed in parallel and returned in frame order. A frame
	that cannot be decoded is reported and left out.

	Args:
		frames_dir: Directory with frame_NNNNNN.<ext> files.
		algorithm: Fingerprint algorithm name.
		workers: Thread count for hashing.

	Returns:
		list: Frame entries sorted by index.
	"""
	files = list_frame_files(frames_dir)
	if len(files) == 0:
		raise RuntimeError(f"no frame files found in directory: {frames_dir}")
	utils.info(f"Fingerprinting {utils.plural(len(files), 'frame')} ({algorithm})")
	entries = []
	failures = []
	with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
		future_map = {}
		for index, path in files:
			future = executor.submit(_fingerprint_entry, index, path, algorithm)
			future_map[future] = path
		completed = concurrent.futures.as_completed(future_map)
		if not utils.is_quiet_mode():
			completed = tqdm(completed, total=len(future_map), unit='frame')
		for future in completed:
			path = future_map[future]
			try:
				entries.append(future.result())
			except (OSError, ValueError) as error:
				failures.append(path)
				utils.warning(f"failed to fingerprint frame {path}: {error}")
	if len(failures) > 0:
		utils.warning(f"failed to process {len(failures)} out of {len(files)} frames")
	if len(entries) == 0:
		raise RuntimeError("no frames could be fingerprinted")
	entries.sort(key=lambda item: item['index'])
	utils.debug(f"loaded {len(entries)} frame entries from {frames_dir}")
	return entries
