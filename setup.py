# setup.py
from setuptools import setup, find_packages

setup(
    name="site-sections",
    version="0.1.0",
    description="Same-origin web crawler that groups pages into site sections and exports them",
    packages=find_packages(exclude=("tests", "tests.*")),
    package_data={"site_sections": ["templates/*.j2"]},
    install_requires=[
        "aiohttp>=3.9",
        "beautifulsoup4>=4.12",
        "click>=8.1",
        "google-api-python-client>=2.100",
        "google-auth>=2.23",
        "jinja2>=3.1",
        "pydantic>=2.5",
        "pyyaml>=6.0",
        "requests>=2.31",
    ],
    extras_require={
        "browser": ["playwright>=1.40"],
        "test": ["pytest>=7.4", "pytest-asyncio>=0.23"],
    },
    entry_points={
        "console_scripts": ["site-sections=site_sections.cli:main"],
    },
    python_requires=">=3.11",
)
