# botanai/__init__.py
# Plant identification and health diagnosis service
