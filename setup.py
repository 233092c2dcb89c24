from setuptools import find_packages, setup

setup(
    name='jobmonitor',
    version='0.3.0',
    description='Submit simulation jobs to a remote cluster and monitor them',
    packages=find_packages(exclude=[
        'jobmonitor.test',
        'jobmonitor.test.*',
    ]),
    python_requires='>=3.8',
    install_requires=[
        'chardet',
        'python-dateutil',
        'requests',
        'simplejson',
    ],
    extras_require={
        'test': [
            'mock',
            'pytest',
        ],
    },
    entry_points={
        "console_scripts": [
            "gracejob = jobmonitor.main:main",
        ],
    }
)
