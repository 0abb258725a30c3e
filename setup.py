from setuptools import find_packages, setup

setup(
    name="httpbridge",
    version="0.1.0",
    description="HTTP GET bridge with blocking and asyncio call surfaces",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.11",
    install_requires=[
        "aiohttp >= 3.9.4",
        "http-message-signatures >= 0.5.0",
        "httpx >= 0.27.0",
    ],
    extras_require={
        "test": [
            "pytest >= 8.0.0",
            "pytest-asyncio >= 0.23.0",
        ],
    },
)
