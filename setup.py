from setuptools import setup, find_namespace_packages

setup(
    name="dockship",
    version="0.1.0",
    description="Install Docker, build an image from a git repository and push it to Docker Hub",
    packages=find_namespace_packages(where="src", include=["dockship", "dockship.*"]),
    package_dir={"": "src"},
    python_requires=">=3.8",
    install_requires=[
        "pydantic>=2.0",
        "click>=8.0",
        "python-dotenv>=1.0",
        "jinja2>=3.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "dockship=dockship.CLI.main:main",
        ],
    },
)
