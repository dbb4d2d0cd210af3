#!/usr/bin/env python3

"""
slidesplit.py

Extract one image per slide from a slideshow or lecture video.

Frames are sampled with ffmpeg, fingerprinted, grouped into visually stable
segments, and the middle frame of every segment is written out as
slide_NN.<ext>. Short transition segments (cross-fades, camera noise) are
folded into their neighbors.
"""

# Standard Library
import argparse
import os

# local repo modules
from slidesplitlib.core import config
from slidesplitlib.core import fingerprint
from slidesplitlib.core import utils
from slidesplitlib.core.project import SlideSplitProject

#============================================

def parse_args(argv: list | None = None) -> argparse.Namespace:
	"""
	Parse command-line arguments.

	Returns:
		argparse.Namespace: Parsed CLI args.
	"""
	parser = argparse.ArgumentParser(
		description="Split a slideshow video into one image per slide."
	)
	parser.add_argument('input_file',
		help="Input video file (e.g. slideshow.mp4).")
	parser.add_argument('-o', '--out-dir', dest='out_dir', default=None,
		help="Output directory (created if missing). Defaults to <input_stem>_slides.")
	parser.add_argument('-c', '--config', dest='config_file', default=None,
		help="Optional config YAML path.")
	parser.add_argument('--write-default-config', dest='write_default_config',
		action='store_true',
		help="Write the default config file for this input and exit.")
	parser.add_argument('--fps', dest='fps', type=float, default=None,
		help="Sampling frames per second before de-duplication.")
	parser.add_argument('--threshold', dest='threshold', type=int, default=None,
		help="Hamming distance threshold (0..64) to separate slides.")
	parser.add_argument('--min-stable-seconds', dest='min_stable_seconds',
		type=float, default=None,
		help="Minimum stable duration in seconds to accept a slide.")
	parser.add_argument('--format', dest='format', default=None,
		choices=sorted(config.OUTPUT_FORMATS.keys()),
		help="Output image format (jpg/jpeg are not lossless).")
	parser.add_argument('--webp-lossless', dest='webp_lossless', action='store_true',
		help="For webp only: use lossless encoding.")
	parser.add_argument('--fingerprint', dest='fingerprint', default=None,
		choices=fingerprint.ALGORITHMS,
		help="Frame fingerprint algorithm.")
	parser.add_argument('-w', '--workers', dest='workers', type=int, default=None,
		help="Worker threads for fingerprinting and writing.")
	parser.add_argument('--cache-dir', dest='cache_dir', default=None,
		help="Directory for temporary extracted frames.")
	parser.add_argument('-k', '--keep-temp', dest='keep_temp', action='store_true',
		help="Keep extracted frames under <out_dir>/frames_raw.")
	parser.add_argument('--no-report', dest='report', action='store_false',
		help="Do not write slides.yaml.")
	parser.add_argument('-q', '--quiet', dest='verbosity', action='store_const',
		const='quiet', help="Only report errors.")
	parser.add_argument('-d', '--debug', dest='verbosity', action='store_const',
		const='debug', help="Print per-stage details.")
	parser.set_defaults(webp_lossless=None)
	parser.set_defaults(keep_temp=None)
	parser.set_defaults(report=None)
	parser.set_defaults(write_default_config=False)
	parser.set_defaults(verbosity='normal')
	return parser.parse_args(argv)

#============================================

def build_run_settings(args: argparse.Namespace) -> dict:
	"""
	Merge defaults, the optional config file, and command-line overrides.
	"""
	config_path = args.config_file
	raw_config = None
	if config_path is not None:
		raw_config = config.load_config(config_path)
	else:
		config_path = "<defaults>"
	settings = config.build_settings(raw_config, config_path)
	overrides = {
		'input_file': args.input_file,
		'out_dir': args.out_dir,
		'cache_dir': args.cache_dir,
		'keep_temp': args.keep_temp,
		'fps': args.fps,
		'threshold': args.threshold,
		'min_stable_seconds': args.min_stable_seconds,
		'fingerprint': args.fingerprint,
		'format': args.format,
		'webp_lossless': args.webp_lossless,
		'report': args.report,
		'workers': args.workers,
	}
	return config.apply_overrides(settings, overrides)

#============================================

def main(argv: list | None = None) -> None:
	args = parse_args(argv)
	utils.set_verbosity(args.verbosity)
	if args.write_default_config:
		config_path = args.config_file
		if config_path is None:
			config_path = config.default_config_path(args.input_file)
		config.write_config_file(config_path, config.default_config())
		print(f"Wrote default config: {config_path}")
		return
	settings = build_run_settings(args)
	utils.debug(
		f"settings: input={settings['input_file']} out_dir={settings['out_dir']} "
		f"fps={settings['fps']} threshold={settings['threshold']} "
		f"min_stable_seconds={settings['min_stable_seconds']}"
	)
	project = SlideSplitProject(settings)
	result = project.run()
	if result['report'] is not None:
		utils.info(f"Report: {os.path.abspath(result['report'])}")
	return

#============================================

if __name__ == '__main__':
	main()
