from setuptools import setup, find_packages

setup(
    name="switchyard",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["main"],
    package_data={
        "switchyard": ["operations/*/index.py"],
    },
    python_requires=">=3.11",
    install_requires=[
        "fastapi",
        "starlette",
        "uvicorn",
        "pydantic>=2",
        "python-dotenv",
        "watchdog",
        "click",
        "aiosqlite",
        "croniter",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
            "httpx",
        ],
    },
    entry_points={
        "console_scripts": [
            "switchyard=main:main",
        ],
    },
)
