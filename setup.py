from setuptools import find_packages, setup

package_name = "quadric_slam"

setup(
    name=package_name,
    version="0.1.0",
    packages=find_packages(exclude=["test", "test.*"]),
    data_files=[
        (
            "share/" + package_name + "/config",
            [
                "config/quadric_slam_base.yaml",
            ],
        ),
        (
            "share/" + package_name + "/config/presets",
            [
                "config/presets/tum_fr1.yaml",
            ],
        ),
    ],
    python_requires=">=3.10",
    install_requires=["numpy", "scipy", "pyyaml", "pydantic>=2"],
    extras_require={"test": ["pytest"]},
    zip_safe=True,
    maintainer="you",
    maintainer_email="you@example.com",
    description="Ellipsoid (dual quadric) landmarks, projection and reprojection factors for object SLAM",
    license="Apache-2.0",
    entry_points={
        "console_scripts": [
            "project_quadrics = quadric_slam.tools.project_quadrics:main",
        ],
    },
)
