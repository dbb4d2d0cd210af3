#!/usr/bin/env python3

"""
Frame segmentation for slide detection.

Frames arrive as an ordered list of entries carrying a 64-bit fingerprint.
A partition is a list of clusters, and each cluster is a list of internal
array positions (0..n-1) forming a contiguous increasing run. Every stage
below consumes and produces a partition; the union of all clusters is always
exactly {0..n-1}.
"""

# Standard Library
import math

# local repo modules
from slidesplitlib.core import fingerprint

#============================================

def _resolve_distance(distance_fn):
	if distance_fn is None:
		return fingerprint.hamming_distance
	return distance_fn

#============================================

def _fp(frames: list, position: int):
	return frames[position]['fingerprint']

#============================================

def compute_min_length(min_stable_seconds: float, fps: float) -> int:
	"""
	Minimum number of sampled frames a stable slide must span.

	Fractional requirements round up.
	"""
	return int(math.ceil(min_stable_seconds * fps))

#============================================

def cluster_frames(frames: list, threshold: int, distance_fn=None) -> list:
	"""
	Split frames into contiguous runs by distance to each run's anchor.

	The anchor is the first frame of a run. A frame joins the current run
	when its distance to the anchor is within threshold, otherwise it
	becomes the anchor of a new run.

	Args:
		frames: Ordered frame entries.
		threshold: Maximum fingerprint distance to the anchor (0..64).
		distance_fn: Optional distance function on fingerprints.

	Returns:
		list: Partition of internal positions.
	"""
	distance_fn = _resolve_distance(distance_fn)
	clusters = []
	if len(frames) == 0:
		return clusters
	current = [0]
	anchor = _fp(frames, 0)
	for i in range(1, len(frames)):
		d = distance_fn(_fp(frames, i), anchor)
		if d <= threshold:
			current.append(i)
		else:
			clusters.append(current)
			current = [i]
			anchor = _fp(frames, i)
	clusters.append(current)
	return clusters

#============================================

def _short_cluster_target(clusters: list, frames: list, i: int, distance_fn) -> int | None:
	count = len(clusters)
	if count == 1:
		return None
	if i == 0:
		return 1
	if i == count - 1:
		return i - 1
	current = clusters[i]
	d_prev = distance_fn(_fp(frames, current[0]), _fp(frames, clusters[i - 1][-1]))
	d_next = distance_fn(_fp(frames, current[-1]), _fp(frames, clusters[i + 1][0]))
	if d_prev <= d_next:
		return i - 1
	return i + 1

#============================================

def eliminate_short_clusters(clusters: list, frames: list, min_len: int,
	distance_fn=None) -> int:
	"""
	Fold clusters shorter than min_len into a neighbor until nothing changes.

	First and last clusters fold inward. An interior cluster folds toward
	the neighbor whose touching frame is closer; ties go to the previous
	neighbor. After a merge the scan resumes at the merged cluster so it is
	evaluated again in the same pass. A lone cluster is never merged.

	Args:
		clusters: Partition, modified in place.
		frames: Ordered frame entries.
		min_len: Minimum cluster length in frames.
		distance_fn: Optional distance function on fingerprints.

	Returns:
		int: Number of merges performed.
	"""
	distance_fn = _resolve_distance(distance_fn)
	merges = 0
	while True:
		changed = False
		i = 0
		while i < len(clusters):
			if len(clusters[i]) < min_len:
				target = _short_cluster_target(clusters, frames, i, distance_fn)
				if target is not None:
					take = clusters.pop(i)
					if target < i:
						clusters[target].extend(take)
						i = target
					else:
						# target shifted left by the pop
						i = target - 1
						clusters[i][0:0] = take
					merges += 1
					changed = True
					continue
			i += 1
		if not changed:
			break
	return merges

#============================================

def merge_micro_splits(clusters: list, frames: list, threshold: int,
	distance_fn=None) -> int:
	"""
	Join neighbors whose touching frames are nearly identical.

	Single forward sweep. The limit is half the clustering threshold,
	rounded down. A grown cluster is tested again against its new right
	neighbor before the sweep moves on.

	Returns:
		int: Number of merges performed.
	"""
	distance_fn = _resolve_distance(distance_fn)
	limit = threshold // 2
	merges = 0
	i = 0
	while i + 1 < len(clusters):
		a_last = _fp(frames, clusters[i][-1])
		b_first = _fp(frames, clusters[i + 1][0])
		if distance_fn(a_last, b_first) <= limit:
			tail = clusters.pop(i + 1)
			clusters[i].extend(tail)
			merges += 1
		else:
			i += 1
	return merges

#============================================

def merge_short_clusters(clusters: list, frames: list, min_stable_seconds: float,
	fps: float, threshold: int, distance_fn=None) -> None:
	"""
	Stabilize a partition in place: drop transition blobs, then micro-splits.

	Args:
		clusters: Partition from cluster_frames, modified in place.
		frames: Ordered frame entries.
		min_stable_seconds: Minimum duration of an accepted slide.
		fps: Sampling rate of the frames.
		threshold: Clustering threshold; micro-splits use half of it.
		distance_fn: Optional distance function on fingerprints.
	"""
	min_len = compute_min_length(min_stable_seconds, fps)
	eliminate_short_clusters(clusters, frames, min_len, distance_fn=distance_fn)
	merge_micro_splits(clusters, frames, threshold, distance_fn=distance_fn)
	return

#============================================

def select_representatives(clusters: list) -> list:
	"""
	Pick the middle member (index len // 2) of every non-empty cluster.
	"""
	representatives = []
	for cluster in clusters:
		if len(cluster) == 0:
			continue
		representatives.append(cluster[len(cluster) // 2])
	return representatives

#============================================

def cluster_positions(clusters: list, frames: list) -> list:
	"""Map internal positions to the frames' own index values."""
	return [[frames[i]['index'] for i in cluster] for cluster in clusters]

#============================================

def representative_positions(clusters: list, frames: list) -> list:
	return [frames[i]['index'] for i in select_representatives(clusters)]

#============================================

def segment_frames(frames: list, threshold: int, min_stable_seconds: float,
	fps: float, distance_fn=None) -> list:
	"""
	Run clustering and both stabilization passes.

	Args:
		frames: Ordered frame entries.
		threshold: Maximum fingerprint distance to a cluster anchor.
		min_stable_seconds: Minimum duration of an accepted slide.
		fps: Sampling rate of the frames.
		distance_fn: Optional distance function on fingerprints.

	Returns:
		list: Final partition of internal positions.
	"""
	clusters = cluster_frames(frames, threshold, distance_fn=distance_fn)
	merge_short_clusters(clusters, frames, min_stable_seconds, fps, threshold,
		distance_fn=distance_fn)
	return clusters
