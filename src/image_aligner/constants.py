"""Shared constants for the text alignment pipeline."""

# Normalization
MAX_ALIGN_SIZE = 150  # Side of the square image fed to the DFT

# Spectral filter
WHITE_FRACTION = 0.0022222  # Fraction of pixels the filter marks as peaks
START_THRESHOLD = 190  # First green-channel threshold tried by the filter

# Pixel colours as (alpha, red, green, blue)
WHITE = (255, 255, 255, 255)
PEAK_BACKGROUND = (255, 255, 0, 0)  # Non-peak sentinel, green must not be 255
TRANSPARENT = (0, 0, 0, 0)

# Peak search
PEAK_ACCURACY = 1000  # Number of peak pixels collected around the centre
PEAK_GREEN = 255  # Green value a filtered pixel must have to count as a peak

# Posterize levels
POSTERIZE_LOW_CUTOFF = 64
POSTERIZE_MID_CUTOFF = 128
POSTERIZE_LOW_VALUE = 32
POSTERIZE_MID_VALUE = 96
POSTERIZE_HIGH_VALUE = 222

# Grayscale luminance weights (red, green, blue)
LUMA_WEIGHTS = (0.299, 0.587, 0.114)
