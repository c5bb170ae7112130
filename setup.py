from setuptools import setup, find_packages
from pathlib import Path

# Read the contents of the README file
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text(encoding="utf-8")

setup(
    name="verifai-cli",
    version="1.0.0",
    description="A terminal tool that estimates whether text, images, video or documents were AI-generated.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "typer>=0.12.3",
        "rich>=13.7.1",
        "questionary>=2.0.1",
        "torch>=2.2.0",
        "transformers>=4.40.0",
        "numpy>=1.26.0",
        "plotille>=5.0.0",
        "pyfiglet>=1.0.2",
        "anthropic>=0.40.0",
        "pydantic-settings>=2.1",
        "pydantic>=2.5",
        "requests>=2.31",
        "pymupdf>=1.23",
        "python-docx>=1.1",
        "opencv-python>=4.8",
    ],
    extras_require={
        "test": ["pytest>=8.0", "httpx"],
    },
    entry_points={
        "console_scripts": [
            "verifai=verifai_cli.main:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Environment :: Console",
    ],
    python_requires=">=3.9",
)
