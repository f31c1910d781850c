from setuptools import setup, find_packages

with open('requirements.txt') as f:
    requirements = f.readlines()

with open('test-requirements.txt') as f:
    test_requirements = f.readlines()

setup(name='package-build-service',
      description='Orchestrator building trees of package recipes',
      version='1.0.0',
      classifiers=[
          "Programming Language :: Python",
          "Topic :: Software Development :: Build Tools"
      ],
      keywords='package build orchestrator dependency cycle repository',
      author='FIXME',
      author_email='FIXME',
      license='MIT',
      packages=find_packages(exclude=['tests', 'tests.*']),
      include_package_data=True,
      zip_safe=False,
      install_requires=requirements,
      extras_require={'test': test_requirements},
      entry_points={
          'console_scripts': ['package_build_service = package_build_service.manage:cli']
      },
      )
