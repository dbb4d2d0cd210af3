#!/usr/bin/env python3

"""
Persist the representative frame of every slide and describe the result.
"""

# Standard Library
import concurrent.futures
import os
import shutil

# PIP3 modules
import yaml

# local repo modules
from slidesplitlib.core import cluster
from slidesplitlib.core import fingerprint
from slidesplitlib.core import utils
from slidesplitlib.media import ffmpeg_extract

#============================================

RAW_FRAMES_DIRNAME = "frames_raw"
REPORT_FILENAME = "slides.yaml"

#============================================

def slide_filename(slide_num: int, ext: str) -> str:
	return f"slide_{slide_num:02d}.{ext}"

#============================================

def _copy_slide(source: str, out_path: str) -> None:
	shutil.copyfile(source, out_path)
	return

#============================================

def write_slides(clusters: list, frames: list, out_dir: str, ext: str,
	workers: int = 4) -> dict:
	"""
	Copy one representative frame per cluster into out_dir.

	Each slide is written independently; a failed copy is recorded and
	the remaining slides are still written.

	Args:
		clusters: Final partition of internal positions.
		frames: Ordered frame entries.
		out_dir: Output directory, must exist.
		ext: Output file extension.
		workers: Thread count for copying.

	Returns:
		dict: 'written' slide records and 'failed' records, both in slide order.
	"""
	jobs = []
	for slide_num, members in enumerate(clusters):
		if len(members) == 0:
			utils.debug(f"skipping empty cluster {slide_num}")
			continue
		rep = frames[members[len(members) // 2]]
		name = slide_filename(slide_num, ext)
		record = {
			'slide': slide_num,
			'file': name,
			'source': rep['path'],
			'representative_index': rep['index'],
		}
		jobs.append((record, os.path.join(out_dir, name)))
	written = []
	failed = []
	with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
		future_map = {}
		for record, out_path in jobs:
			future = executor.submit(_copy_slide, record['source'], out_path)
			future_map[future] = record
		for future in concurrent.futures.as_completed(future_map):
			record = future_map[future]
			try:
				future.result()
			except OSError as error:
				failed.append({
					'slide': record['slide'],
					'source': record['source'],
					'error': str(error),
				})
				continue
			utils.debug(
				f"wrote slide {record['slide']} from frame "
				f"{record['representative_index']} to {record['file']}"
			)
			written.append(record)
	written.sort(key=lambda item: item['slide'])
	failed.sort(key=lambda item: item['slide'])
	return {'written': written, 'failed': failed}

#============================================

def keep_temporary_frames(frames_dir: str, out_dir: str) -> int:
	"""
	Copy the raw extracted frames into <out_dir>/frames_raw.

	Returns:
		int: Number of files copied.
	"""
	keep_path = os.path.join(out_dir, RAW_FRAMES_DIRNAME)
	os.makedirs(keep_path, exist_ok=True)
	utils.info(f"Keeping temporary frames in: {keep_path}")
	copied = 0
	for name in sorted(os.listdir(frames_dir)):
		source = os.path.join(frames_dir, name)
		if not os.path.isfile(source):
			continue
		if os.path.splitext(name)[1] == "":
			continue
		shutil.copyfile(source, os.path.join(keep_path, name))
		copied += 1
	utils.debug(f"copied {copied} temporary frames to {RAW_FRAMES_DIRNAME}")
	return copied

#============================================

def build_slide_report(input_file: str, settings: dict, clusters: list,
	frames: list, written: list) -> dict:
	"""
	Describe every written slide with its frame range and timing.

	Times count samples from the first extracted frame and divide by the
	sampling rate; the end time is exclusive.
	"""
	fps = settings['fps']
	files_by_slide = {}
	for record in written:
		files_by_slide[record['slide']] = record['file']
	positions = cluster.cluster_positions(clusters, frames)
	slides = []
	for slide_num, members in enumerate(clusters):
		if slide_num not in files_by_slide:
			continue
		rep = frames[members[len(members) // 2]]
		first_index = positions[slide_num][0]
		last_index = positions[slide_num][-1]
		first_sample = first_index - ffmpeg_extract.FIRST_FRAME_NUMBER
		last_sample = last_index - ffmpeg_extract.FIRST_FRAME_NUMBER
		slides.append({
			'file': files_by_slide[slide_num],
			'representative_frame': rep['index'],
			'first_frame': first_index,
			'last_frame': last_index,
			'frame_count': len(members),
			'start_seconds': round(first_sample / fps, 3),
			'end_seconds': round((last_sample + 1) / fps, 3),
			'fingerprint': fingerprint.format_fingerprint(rep['fingerprint']),
		})
	return {
		'input': input_file,
		'parameters': {
			'fps': fps,
			'threshold': settings['threshold'],
			'min_stable_seconds': settings['min_stable_seconds'],
			'min_stable_frames': cluster.compute_min_length(
				settings['min_stable_seconds'], fps),
			'fingerprint': settings['fingerprint'],
		},
		'frames': len(frames),
		'slides': slides,
	}

#============================================

def write_slide_report(report_path: str, report: dict) -> None:
	with open(report_path, 'w', encoding='utf-8') as handle:
		handle.write(yaml.safe_dump(report, sort_keys=False))
	return
