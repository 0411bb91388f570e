#!/usr/bin/env python

"""The setup script."""

from setuptools import find_packages, setup

with open('requirements.txt') as f:
    requirements = f.read().strip().split('\n')

with open('README.rst') as f:
    long_description = f.read()

setup(
    python_requires='>=3.8',
    classifiers=[
        'Development Status :: 2 - Pre-Alpha',
        'License :: OSI Approved :: MIT License',
        'Natural Language :: English',
        'Programming Language :: Python :: 3',
        'Topic :: Scientific/Engineering',
        'Operating System :: OS Independent',
        'Intended Audience :: Science/Research',
    ],
    description='Single-species size-spectrum model of anchovy coupled to a plankton resource',
    install_requires=requirements,
    extras_require={'test': ['pytest']},
    license='MIT license',
    long_description=long_description,
    include_package_data=True,
    package_data={'sizespec': ['core/default_settings.yml']},
    keywords='sizespec size-spectrum fisheries',
    name='sizespec',
    packages=find_packages(include=['sizespec', 'sizespec.*']),
    zip_safe=False,
)
