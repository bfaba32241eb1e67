"""
Pipeline constants - working sizes, thresholds and labels
"""

# Normalizer
MAX_SIDE = 512                  # longer side is downsampled to at most this
MIN_SIDE = 64                   # both sides are floored at this

# Feature extraction
LUMA_WEIGHTS = (0.299, 0.587, 0.114)
BRIGHT_THRESHOLD = 170          # gray > this counts as a bright pixel
EDGE_THRESHOLD = 100            # Sobel magnitude > this counts as an edge

PARTICLE_BIN_LABELS = ("0-50", "50-100", "100-200", "200-400", "400-600", "600+")
PARTICLE_BIN_LIMITS = {
    "0-50": (4, 95),
    "50-100": (10, 110),
    "100-200": (8, 100),
    "200-400": (4, 70),
    "400-600": (2, 40),
    "600+": (1, 20),
}

# Reconstruction (center * 1.45 - median * 0.45)
SHARPEN_CENTER_WEIGHT = 1.45
SHARPEN_MEDIAN_WEIGHT = 0.45
MEDIAN_KERNEL = 3

# Scoring
MODEL_NAME = "NanoVisionNet-Lite (Denoising Autoencoder + Morphology Head)"
PROMISING_THRESHOLD = 75        # weighted > this => Promising Candidate
NEEDS_OPTIMIZATION_THRESHOLD = 62
DENSITY_REGIONS = ("Q1", "Q2", "Q3", "Q4")
RADAR_FULL_MARK = 100
