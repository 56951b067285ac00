"""
Pytest bootstrap: the environment must be set before any app module is imported.
Uses an in-memory SQLite database and a throwaway upload directory.
"""
import os
import tempfile

os.environ["TESTING"] = "True"
os.environ["DEBUG"] = "False"
os.environ["ENVIRONMENT"] = "test"
os.environ["ADMIN_API_KEY"] = ""
os.environ["CLOUDINARY_CLOUD_NAME"] = ""
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="catalog-uploads-")
os.environ["API_BASE_URL"] = "http://testserver"
