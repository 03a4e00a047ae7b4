"""Complexity analyzers: fast, high-accuracy, perceptual, normal-map and combined."""

from avatar_compressor.analyzers.combined import CombinedAnalyzer, create_analyzer, create_normal_map_analyzer
from avatar_compressor.analyzers.fast import FastAnalyzer
from avatar_compressor.analyzers.high_accuracy import HighAccuracyAnalyzer
from avatar_compressor.analyzers.normal_map import NormalMapAnalyzer
from avatar_compressor.analyzers.perceptual import PerceptualAnalyzer

__all__ = [
    "CombinedAnalyzer",
    "FastAnalyzer",
    "HighAccuracyAnalyzer",
    "NormalMapAnalyzer",
    "PerceptualAnalyzer",
    "create_analyzer",
    "create_normal_map_analyzer",
]
