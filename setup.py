# setup.py
from setuptools import setup, find_packages

setup(
    name="approval-flow-rules",
    version="0.1.0",
    description="Condition evaluation and path validation for approval flow definitions, with the approvalctl CLI.",
    author="Your Name or Team",
    author_email="your_email@example.com",
    # approvalflow 为规则引擎库，approvalctl 为命令行工具
    packages=find_packages(include=['approvalflow', 'approvalflow.*', 'approvalctl', 'approvalctl.*']),

    include_package_data=True,
    install_requires=[
        "click>=8.0",
        "pyyaml",
        "jinja2",
        "rich",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        'console_scripts': [
            'approvalctl = approvalctl.cli:cli',
        ],
    },
    python_requires=">=3.8",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Office/Business",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
)
