from setuptools import setup, find_packages

setup(
    name="ledger_recon",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "pandas",
        "numpy",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-dependency",
        ],
    },
    entry_points={
        "console_scripts": [
            "ledger-recon=ledger_recon.cli:main",
        ],
    },
    description="Reconciles bank and payment processor statements against a ledger spreadsheet",
    python_requires=">=3.8",
)
