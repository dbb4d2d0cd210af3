#!/usr/bin/env python3

import os
import shutil
import tempfile
from slidesplitlib.core import cluster
from slidesplitlib.core import config
from slidesplitlib.core import frames as frames_module
from slidesplitlib.core import utils
from slidesplitlib.exporters import slides
from slidesplitlib.media import ffmpeg_extract

#============================================

class SlideSplitProject():
	def __init__(self, settings: dict):
		config.validate_settings(settings)
		self.settings = settings
		self.input_file = settings['input_file']
		self.out_dir = settings['out_dir']
		if self.out_dir is None:
			self.out_dir = config.default_out_dir(self.input_file)
		self.cache_dir = settings.get('cache_dir')
		self.keep_temp = settings.get('keep_temp', False)
		self.ext = config.OUTPUT_FORMATS[settings['format']]
		self.frames = []
		self.clusters = []
		self.result = None

	#============================
	def run(self) -> dict:
		if not config.is_lossless_output(self.settings):
			utils.warning(f"{self.settings['format']} output is not lossless. Consider png, "
				"tiff, bmp or webp with webp_lossless for lossless output.")
		ffmpeg_bin = ffmpeg_extract.find_ffmpeg(self.settings['ffmpeg_bin'])
		utils.info(f"Creating output directory: {self.out_dir}")
		os.makedirs(self.out_dir, exist_ok=True)
		if self.cache_dir is not None:
			os.makedirs(self.cache_dir, exist_ok=True)
		frames_dir = tempfile.mkdtemp(prefix="slidesplit-frames-", dir=self.cache_dir)
		utils.debug(f"temporary frames directory: {frames_dir}")
		try:
			self.result = self._process(ffmpeg_bin, frames_dir)
		finally:
			if self.keep_temp:
				slides.keep_temporary_frames(frames_dir, self.out_dir)
			shutil.rmtree(frames_dir, ignore_errors=True)
		return self.result

	#============================
	def _process(self, ffmpeg_bin: str, frames_dir: str) -> dict:
		ffmpeg_extract.extract_frames(self.input_file, frames_dir,
			self.settings['fps'], image_format=self.settings['format'],
			webp_lossless=self.settings['webp_lossless'], ffmpeg_bin=ffmpeg_bin)
		if len(frames_module.list_frame_files(frames_dir)) == 0:
			raise RuntimeError("no frames extracted. Is the video valid?")
		self.frames = frames_module.load_frame_entries(frames_dir,
			algorithm=self.settings['fingerprint'], workers=self.settings['workers'])
		utils.info(f"Loaded {utils.plural(len(self.frames), 'frame')} for processing")
		self.clusters = self.segment()
		outcome = slides.write_slides(self.clusters, self.frames, self.out_dir,
			self.ext, workers=self.settings['workers'])
		self._check_outcome(outcome)
		report_file = None
		if self.settings['report']:
			report = slides.build_slide_report(self.input_file, self.settings,
				self.clusters, self.frames, outcome['written'])
			report_file = os.path.join(self.out_dir, slides.REPORT_FILENAME)
			slides.write_slide_report(report_file, report)
		count = len(outcome['written'])
		utils.info(f"Done. Wrote {utils.plural(count, 'slide')} to {self.out_dir}")
		return {
			'slides': outcome['written'],
			'report': report_file,
			'frames': len(self.frames),
		}

	#============================
	def segment(self) -> list:
		threshold = self.settings['threshold']
		min_len = cluster.compute_min_length(self.settings['min_stable_seconds'],
			self.settings['fps'])
		clusters = cluster.cluster_frames(self.frames, threshold)
		utils.info(f"Initial clustering produced {utils.plural(len(clusters), 'cluster')}")
		short_merges = cluster.eliminate_short_clusters(clusters, self.frames, min_len)
		utils.debug(f"short-cluster merges: {short_merges} (min length {min_len} frames)")
		micro_merges = cluster.merge_micro_splits(clusters, self.frames, threshold)
		utils.debug(f"micro-split merges: {micro_merges}")
		utils.info(f"After merging short clusters: {len(clusters)} final clusters")
		return clusters

	#============================
	def _check_outcome(self, outcome: dict) -> None:
		if len(outcome['failed']) > 0:
			lines = []
			for item in outcome['failed']:
				lines.append(f"slide {item['slide']} from {item['source']}: {item['error']}")
			raise RuntimeError(
				f"failed to write {utils.plural(len(lines), 'slide')}:\n" + "\n".join(lines)
			)
		if len(outcome['written']) == 0:
			raise RuntimeError("No slides detected (threshold too strict?). "
				"Try lowering --threshold or increasing --fps.")
		return
