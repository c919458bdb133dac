from setuptools import setup, find_packages

setup(
    name             = 'taxi-wallboard',
    version          = '1.4.0',
    description      = 'Taxi Wallboard — live dispatch board built from the booking portal table',
    author           = 'Voss Taxi',
    packages         = find_packages(exclude=['tests*']),
    py_modules       = ['run_wallboard'],
    install_requires = [
        'beautifulsoup4>=4.12',
        'fastapi>=0.110',
        'uvicorn>=0.29',
        'pydantic>=2.0',
    ],
    extras_require   = {
        'test': [
            'pytest>=7.0',
            'httpx>=0.27',
        ],
    },
    entry_points     = {
        'console_scripts': [
            'wallboard = wallboard.cli:main',
        ],
    },
    python_requires  = '>=3.10',
    classifiers      = [
        'Programming Language :: Python :: 3',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
    ],
)
