from setuptools import setup, find_packages

setup(
    name='tabscope',
    version='0.1.0',
    license="Apache 2.0",
    description="tabscope: structured snapshots of the interactive elements in a live browser tab",
    long_description=open('README.md').read(),  # Ensure the README.md exists and is correct
    long_description_content_type='text/markdown',  # Use 'text/markdown' for Markdown files
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        'pydantic>=2.0',
        'click>=8.0',
        'python-dotenv>=1.0',
        'beautifulsoup4>=4.11',
        'playwright>=1.40',
        'psutil>=5.9',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
            'pytest-asyncio>=0.21',
        ],
    },
    entry_points={
        'console_scripts': [
            'tabscope=tabscope.command.tabscope_snapshot:run',
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: OS Independent",
    ],
    python_requires='>=3.9',
)
