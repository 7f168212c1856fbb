"""
fsl-verbs: short, memorable verbs for FSL command-line tools.
"""

__version__ = "0.1.0"
