from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="watermark-remover-studio",
    version="1.0.0",
    author="Watermark Remover Studio Team",
    description="Region-based watermark and logo removal: blur, fill, inpaint and texture synthesis",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Graphics :: Editors :: Raster-Based",
    ],
    python_requires=">=3.10",
    install_requires=requirements,
    extras_require={
        "segmentation": ["mediapipe>=0.10"],
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "watermark-remover-api=watermark_remover.api_server:main",
            "watermark-remover-batch=watermark_remover.cli.batch_process:main",
        ],
    },
    include_package_data=True,
)
