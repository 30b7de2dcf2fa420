from setuptools import setup, find_packages

with open("README.md", "r") as fh:
    long_description = fh.read()

setup(
    name='SOP',
    version='0.1.0',
    description='Project future and counterfactual historical paths of a bounded development indicator by '
                'percentile of progress and by speed of progress.',
    long_description=long_description,
    long_description_content_type="text/markdown",
    package_dir={'': 'src'},
    packages=find_packages(where='src'),
    keywords=['Development indicators', 'Projection', 'Speed of progress'],
    package_data={
        'SOP': [],
    },
    include_package_data=True,
    install_requires=[
                      'numpy>=1.22',
                      'openpyxl>=3.0.9',
                      'pandas>=1.4.2',
                      'pint>=0.18',
                      'pint-pandas>=0.2',
                      'pydantic>=2.0',
                      'typing_extensions>=4.0',
                      ],
    python_requires='>=3.9',
    extras_require={
        'dev': [
            'nose2',
            'pytest',
        ]
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: Microsoft :: Windows",
        "Operating System :: Unix",
        "Operating System :: MacOS",
        "Intended Audience :: Science/Research",
        "Intended Audience :: Developers",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3 :: Only",
        "Topic :: Scientific/Engineering"
    ],
    test_suite='nose2.collector.collector',
)
