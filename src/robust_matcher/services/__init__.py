"""Service layer components."""

from robust_matcher.services.estimators import EightPointFundamentalEstimator, RANSACFundamentalEstimator
from robust_matcher.services.feature_extractor import ORBFeatureExtractor, SIFTFeatureExtractor
from robust_matcher.services.geometric_verifier import FundamentalVerifier
from robust_matcher.services.neighbor_search import BFNeighborSearch
from robust_matcher.services.pipeline import MatcherParams, RobustMatcher
from robust_matcher.services.ratio_test import ratio_test
from robust_matcher.services.symmetry_test import symmetry_test

__all__ = [
    "BFNeighborSearch",
    "EightPointFundamentalEstimator",
    "FundamentalVerifier",
    "MatcherParams",
    "ORBFeatureExtractor",
    "RANSACFundamentalEstimator",
    "RobustMatcher",
    "SIFTFeatureExtractor",
    "ratio_test",
    "symmetry_test",
]
