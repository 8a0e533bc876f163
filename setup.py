from setuptools import find_packages, setup

# Minimal setup.py to allow pip installation in environments (like p4a) that
# default to legacy builds and need explicit python_requires.

package_list = find_packages(
  include=[
    "entrypoints",
    "entrypoints.*",
    "backend",
    "backend.*",
    "os_interfaces",
    "os_interfaces.*",
    "reminders",
    "reminders.*",
    "push_worker",
    "push_worker.*",
  ]
)

setup(
  name="tenzin-notifications",
  version="0.1.0",
  description="Tenzin reminders, notification display and push fan-out worker",
  python_requires=">=3.11",
  packages=package_list,
  include_package_data=True,
  install_requires=[
    "fastapi",
    "uvicorn[standard]",
    "asgi-correlation-id",
    "pywebview",
    "pyyaml",
    "pydantic>=2",
    "python-dotenv",
    "platformdirs",
    "keyring",
    "httpx",
    "appwrite",
    "firebase-admin>=6.2",
  ],
  extras_require={
    "android": ["pyjnius", "cython==3.0.12", "buildozer"],
    "linux": ["desktop-notifier", "pystemd"],
    "dev": ["pytest", "pytest-asyncio", "pytest-cov"],
  },
  entry_points={
    "console_scripts": [
      "tenzin-app=entrypoints.tenzin_app_linux:main",
      "tenzin-reminder-fire=reminders.main:run",
      "tenzin-push-worker=push_worker.main:run",
    ],
  },
)
