from setuptools import setup, find_packages

setup(
    name="mining-simulator",
    version="0.1.0",
    author="Your Name",
    author_email="your.email@example.com",
    description="A round-based simulator of strategic blockchain mining: selfish, N-Deficit and honest miners.",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    url="https://github.com/yourusername/mining-simulator",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "simpy",
        "pandas",
        "matplotlib",
        "rich",
        "tqdm"
    ],
    extras_require={
        "test": ["pytest"],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.7",
)
