from setuptools import setup, find_packages

setup(
    name="radar-ip",
    version="0.2.0",
    description="Scan an IP range via SSH and find which host owns a given MAC address",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "asyncssh[bcrypt]>=2.14.0",
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "radar-ip=radar_ip.cli:run",
        ],
    },
    python_requires=">=3.11",
)
