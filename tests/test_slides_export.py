#!/usr/bin/env python3

"""
Unit tests for slide image writing and the slide report.
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
from slidesplitlib.core import config
from slidesplitlib.core import utils
from slidesplitlib.exporters import slides
from slidesplitlib.media import ffmpeg_extract

#============================================

@pytest.fixture(autouse=True)
def quiet_output():
	previous = utils.get_verbosity()
	utils.set_verbosity('quiet')
	yield
	utils.set_verbosity(previous)

#============================================

def _make_frames(temp_dir: str, count: int) -> list:
	frames = []
	for index in range(count):
		path = os.path.join(temp_dir, f"frame_{index + 1:06d}.png")
		with open(path, 'wb') as handle:
			handle.write(f"frame {index + 1}".encode('ascii'))
		frames.append({'index': index + 1, 'path': path, 'fingerprint': index})
	return frames

#============================================

def test_slide_filename() -> None:
	assert slides.slide_filename(0, "png") == "slide_00.png"
	assert slides.slide_filename(12, "jpg") == "slide_12.jpg"
	assert slides.slide_filename(123, "webp") == "slide_123.webp"

#============================================

def test_write_slides_copies_middle_frames() -> None:
	with tempfile.TemporaryDirectory() as temp_dir:
		frames_dir = os.path.join(temp_dir, "frames")
		out_dir = os.path.join(temp_dir, "out")
		os.makedirs(frames_dir)
		os.makedirs(out_dir)
		frames = _make_frames(frames_dir, 7)
		clusters = [[0, 1, 2], [3, 4, 5, 6]]
		outcome = slides.write_slides(clusters, frames, out_dir, "png", workers=2)
		assert outcome['failed'] == []
		assert [record['file'] for record in outcome['written']] == [
			"slide_00.png", "slide_01.png"]
		assert [record['representative_index'] for record in outcome['written']] == [2, 6]
		with open(os.path.join(out_dir, "slide_01.png"), 'rb') as handle:
			assert handle.read() == b"frame 6"

#============================================

def test_failed_slide_does_not_stop_siblings() -> None:
	with tempfile.TemporaryDirectory() as temp_dir:
		out_dir = os.path.join(temp_dir, "out")
		os.makedirs(out_dir)
		frames = _make_frames(temp_dir, 9)
		os.remove(frames[4]['path'])
		clusters = [[0, 1, 2], [3, 4, 5], [6, 7, 8]]
		outcome = slides.write_slides(clusters, frames, out_dir, "png")
		assert [record['slide'] for record in outcome['written']] == [0, 2]
		assert len(outcome['failed']) == 1
		assert outcome['failed'][0]['slide'] == 1
		assert outcome['failed'][0]['source'] == frames[4]['path']
		assert os.path.isfile(os.path.join(out_dir, "slide_00.png"))
		assert os.path.isfile(os.path.join(out_dir, "slide_02.png"))
		assert not os.path.exists(os.path.join(out_dir, "slide_01.png"))

#============================================

def test_empty_cluster_is_skipped() -> None:
	with tempfile.TemporaryDirectory() as temp_dir:
		frames = _make_frames(temp_dir, 2)
		out_dir = os.path.join(temp_dir, "out")
		os.makedirs(out_dir)
		outcome = slides.write_slides([[], [0, 1]], frames, out_dir, "png")
		assert [record['file'] for record in outcome['written']] == ["slide_01.png"]

#============================================

def test_keep_temporary_frames() -> None:
	with tempfile.TemporaryDirectory() as temp_dir:
		frames_dir = os.path.join(temp_dir, "frames")
		out_dir = os.path.join(temp_dir, "out")
		os.makedirs(frames_dir)
		_make_frames(frames_dir, 3)
		with open(os.path.join(frames_dir, "README"), 'w') as handle:
			handle.write("no extension")
		copied = slides.keep_temporary_frames(frames_dir, out_dir)
		assert copied == 3
		kept = sorted(os.listdir(os.path.join(out_dir, slides.RAW_FRAMES_DIRNAME)))
		assert kept == ["frame_000001.png", "frame_000002.png", "frame_000003.png"]

#============================================

def test_slide_report() -> None:
	with tempfile.TemporaryDirectory() as temp_dir:
		out_dir = os.path.join(temp_dir, "out")
		os.makedirs(out_dir)
		frames = _make_frames(temp_dir, 6)
		clusters = [[0, 1, 2, 3], [4, 5]]
		settings = config.build_settings(None, "<defaults>")
		settings['min_stable_seconds'] = 0.5
		outcome = slides.write_slides(clusters, frames, out_dir, "png")
		report = slides.build_slide_report("talk.mp4", settings, clusters,
			frames, outcome['written'])
		report_path = os.path.join(out_dir, slides.REPORT_FILENAME)
		slides.write_slide_report(report_path, report)
		with open(report_path, 'r', encoding='utf-8') as handle:
			data = yaml.safe_load(handle)
	assert data['input'] == "talk.mp4"
	assert data['frames'] == 6
	assert data['parameters']['min_stable_frames'] == 1
	first = data['slides'][0]
	assert first['file'] == "slide_00.png"
	assert first['representative_frame'] == 3
	assert first['first_frame'] == 1
	assert first['last_frame'] == 4
	assert first['frame_count'] == 4
	assert first['start_seconds'] == 0.0
	assert first['end_seconds'] == 2.0
	assert first['fingerprint'] == "0000000000000002"
	assert data['slides'][1]['representative_frame'] == 6
	assert data['slides'][1]['start_seconds'] == 2.0
	assert data['slides'][1]['end_seconds'] == 3.0

#============================================

def test_report_times_start_at_first_extracted_frame() -> None:
	with tempfile.TemporaryDirectory() as temp_dir:
		out_dir = os.path.join(temp_dir, "out")
		os.makedirs(out_dir)
		frames = _make_frames(temp_dir, 4)
		assert frames[0]['index'] == ffmpeg_extract.FIRST_FRAME_NUMBER
		clusters = [[0, 1, 2, 3]]
		settings = config.build_settings(None, "<defaults>")
		settings['fps'] = 2.0
		outcome = slides.write_slides(clusters, frames, out_dir, "png")
		report = slides.build_slide_report("talk.mp4", settings, clusters,
			frames, outcome['written'])
	only = report['slides'][0]
	assert only['first_frame'] == 1
	assert only['last_frame'] == 4
	assert only['start_seconds'] == 0.0
	assert only['end_seconds'] == 2.0
