import os

from prayerclock import create_app
from prayerclock.config import config_by_name

# Step 1: Determine the config name
config_name = os.environ.get('FLASK_CONFIG') or 'default'
if config_name not in config_by_name:
    print(f"Warning: Config name '{config_name}' not found. Using 'default' config.")
    config_name = 'default'

# Step 2: Create the app (Flask-Migrate is wired in the factory)
app = create_app(config_name)

# Step 3: Database tables are managed with Flask-Migrate:
#   flask --app run db migrate -m "message"
#   flask --app run db upgrade

# Step 4: Run the app
if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5000))
    app.logger.info(f"Starting application with '{config_name}' configuration...")
    app.logger.info(f"Debug mode is: {'ON' if app.config.get('DEBUG') else 'OFF'}")
    app.run(host='0.0.0.0', port=port)
