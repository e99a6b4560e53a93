import re
from pathlib import Path
from setuptools import setup, find_packages


def get_version():
    init_file = Path(__file__).parent / 'mfactor' / '__init__.py'
    content = init_file.read_text(encoding='utf-8')
    match = re.search(r'^__version__\s*=\s*["\']([^"\']+)["\']', content, re.M)
    return match.group(1) if match else '0.0.0'


setup(
    name='mfactor',
    version=get_version(),
    author='Phantom Management',
    author_email='quantbai@gmail.com',
    description='Multi-factor synthesis, cross-sectional ranking and IC/ICIR diagnostics.',
    long_description=open('README.md', encoding='utf-8').read(),
    long_description_content_type='text/markdown',
    packages=find_packages(include=['mfactor', 'mfactor.*']),
    install_requires=[
        'numpy>=2.0.0',
        'pandas>=2.1.0,<3.0.0',
        'scipy>=1.9.0',
        'rich>=13.0.0',
    ],
    extras_require={
        'test': ['pytest>=7.0.0'],
    },
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'Intended Audience :: Financial and Insurance Industry',
        'Intended Audience :: Science/Research',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Programming Language :: Python :: 3.13',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
        'Topic :: Office/Business :: Financial :: Investment',
        'Topic :: Scientific/Engineering :: Information Analysis',
    ],
    python_requires='>=3.10',
)
