# setup.py - 项目打包配置

from setuptools import setup, find_packages

setup(
    name="exploding-kitten-client",
    version="0.1.0",
    description="Real-time multiplayer card game client with a resilient live leaderboard",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.8",
    install_requires=[
        "aiohttp>=3.8",
        "pygame>=2.0.0",
        "websockets>=10.0",
    ],
    extras_require={
        "dev": [
            "black==23.9.1",
            "flake8==6.1.0",
            "isort==5.12.0",
            "pytest==7.4.0",
            "pytest-asyncio==0.21.1",
            "pytest-cov==4.1.0",
            "pre-commit==3.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "exploding-kitten=exploding_kitten.client.main:main",
        ],
    },
)
