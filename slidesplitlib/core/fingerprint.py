#!/usr/bin/env python3

"""
64-bit perceptual fingerprints for sampled video frames.

Two algorithms are available:
- gradient: difference hash, one bit per horizontally adjacent pixel pair
  of a 9x8 grayscale thumbnail.
- dct: perceptual hash, low-frequency 8x8 block of the DCT of a 32x32
  grayscale thumbnail compared against its median.

Fingerprints are stored as plain ints so they can be compared with XOR.
"""

# PIP3 modules
import imagehash
from PIL import Image

#============================================

FINGERPRINT_BITS = 64
HASH_SIZE = 8
ALGORITHMS = ('gradient', 'dct')
DEFAULT_ALGORITHM = 'gradient'

#============================================

def _hash_to_int(image_hash: imagehash.ImageHash) -> int:
	return int(str(image_hash), 16)

#============================================

def compute_fingerprint(image: Image.Image, algorithm: str = DEFAULT_ALGORITHM) -> int:
	"""
	Compute a 64-bit fingerprint for a PIL image.

	Args:
		image: Source image in any mode PIL can convert to grayscale.
		algorithm: 'gradient' or 'dct'.

	Returns:
		int: Fingerprint in 0..2**64-1.
	"""
	if algorithm == 'gradient':
		return _hash_to_int(imagehash.dhash(image, hash_size=HASH_SIZE))
	if algorithm == 'dct':
		return _hash_to_int(imagehash.phash(image, hash_size=HASH_SIZE))
	raise RuntimeError(f"unknown fingerprint algorithm: {algorithm}")

#============================================

def fingerprint_file(filepath: str, algorithm: str = DEFAULT_ALGORITHM) -> int:
	with Image.open(filepath) as image:
		image.load()
		return compute_fingerprint(image, algorithm)

#============================================

def hamming_distance(a: int, b: int) -> int:
	return (a ^ b).bit_count()

#============================================

def format_fingerprint(value: int) -> str:
	return f"{value:016x}"
