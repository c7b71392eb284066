from setuptools import setup, find_namespace_packages

setup(
    name="magpie-catalog",
    version="0.1.0",
    packages=find_namespace_packages(include=['cli*', 'magpie*', 'api*']),
    include_package_data=True,
    python_requires=">=3.11",
    install_requires=[
        "Click",
        "SQLAlchemy>=2.0",
        "fastapi",
        "pydantic>=2",
        "uvicorn",
        "httpx",
        "google-auth",
        "requests",
        "python-dotenv",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "magpie=cli.main:main",
        ],
    },
)
