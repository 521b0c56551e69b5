"""
Setup script for SoftPoseEstimation, SoftPOSIT pose estimation without known correspondences.
"""

from setuptools import setup, find_packages
import os


def read_readme():
    """Read README file for long description."""
    if os.path.exists('README.md'):
        with open('README.md', 'r', encoding='utf-8') as f:
            return f.read()
    return "SoftPOSIT: simultaneous pose and correspondence estimation"


# Core requirements (always installed)
install_requires = [
    'numpy>=1.19.0',
    'opencv-python>=4.5.0',
    'scipy>=1.6.0',
    'matplotlib>=3.3.0',
]

# Optional dependencies for different use cases
extras_require = {
    'dev': [
        'pytest>=6.0.0',
        'pytest-cov>=2.12.0',
    ],
}

setup(
    name="soft-pose-estimation",
    version="1.0.0",
    description="SoftPOSIT pose estimation from unmatched image and model points",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    packages=find_packages(include=['SoftPoseEstimation', 'SoftPoseEstimation.*']),
    py_modules=['run_softposit'],
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Topic :: Scientific/Engineering :: Image Recognition",
    ],
    python_requires=">=3.8",
    install_requires=install_requires,
    extras_require=extras_require,
    entry_points={
        'console_scripts': [
            'softposit=SoftPoseEstimation.cli:main',
        ],
    },
    keywords=[
        "computer vision",
        "pose estimation",
        "POSIT",
        "SoftPOSIT",
        "deterministic annealing",
        "correspondence",
        "opencv"
    ],
)
