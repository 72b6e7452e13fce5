import requests

from squarespace_migrator.utils.errors import MigrationError, log_message


class PreFlightCheckError(MigrationError):
    """Custom exception for pre-flight check failures."""
    pass


def run_wordpress_pre_flight_checks(config: dict):
    """
    Verifies that the WordPress site is correctly configured for migration.

    Args:
        config: The application configuration dictionary.

    Raises:
        PreFlightCheckError: If any check fails.
    """
    log_message("Running pre-flight checks...")

    wp = config.get("wordpress", {})
    base_url = (wp.get("base_url") or "").rstrip("/")
    username = wp.get("username")
    password = wp.get("application_password")
    post_type = wp.get("post_type", "blog")

    if not base_url:
        raise PreFlightCheckError("WordPress base_url not found in the configuration file.")
    if not username or not password:
        raise PreFlightCheckError("WordPress username or application password not found in the configuration file.")

    auth = (username, password)

    # Check 1: Verify credentials
    me_url = f"{base_url}/wp-json/wp/v2/users/me"
    try:
        response = requests.get(me_url, auth=auth, timeout=10)
        response.raise_for_status()
    except requests.HTTPError as e:
        if e.response is not None and e.response.status_code == 401:
            raise PreFlightCheckError("The supplied application password is invalid or was revoked.")
        raise PreFlightCheckError(f"Unexpected error while checking the users API: {e}")
    except requests.RequestException as e:
        raise PreFlightCheckError(f"Network error while connecting to the WordPress REST API: {e}")

    # Check 2: Verify the target post type is exposed over REST
    type_url = f"{base_url}/wp-json/wp/v2/types/{post_type}"
    try:
        response = requests.get(type_url, auth=auth, timeout=10)
        response.raise_for_status()
    except requests.HTTPError as e:
        if e.response is not None and e.response.status_code == 404:
            raise PreFlightCheckError(f"Post type '{post_type}' is not registered or not exposed over REST (show_in_rest).")
        raise PreFlightCheckError(f"Unexpected error while checking post type '{post_type}': {e}")
    except requests.RequestException as e:
        raise PreFlightCheckError(f"Network error while checking post type '{post_type}': {e}")

    log_message("Pre-flight checks passed successfully.")
