from setuptools import setup, find_packages

setup(
    name="npmload",
    version="0.1.0",
    description="AI-powered npm installer: describe your project, get the install commands run",
    author="Vaibhav",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "google-genai>=1.0.0",
        "typer>=0.9.0",
        "rich>=13.0.0",
        "prompt-toolkit>=3.0.0",
        "python-dotenv>=1.0.0",
        "pydantic>=2.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "npmload=npmload.main:app",
        ],
    },
    python_requires=">=3.8",
)
