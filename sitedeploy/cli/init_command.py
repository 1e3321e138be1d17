import logging
import textwrap
from pathlib import Path

from sitedeploy.project import APP_FILE

logger = logging.getLogger(__name__)

TEMPLATE_CONTENT = """\
from sitedeploy.app import SiteDeployApp
from sitedeploy.config import AwsConfig, BehaviorConfig, SiteDeployConfig, SyncConfig

app = SiteDeployApp("{project_name}")

@app.config
def configuration(stage: str) -> SiteDeployConfig:
    return SiteDeployConfig(
        domain=f"{{stage}}.example.com",
        aws=AwsConfig(
            # region="us-east-1",        # Uncomment to override AWS CLI/env var region
            # profile="your-profile",    # Uncomment to use specific AWS profile
        ),
        sync=[
            SyncConfig(local_dir="dist/_nuxt", path="_nuxt"),
        ],
        behaviors=[
            BehaviorConfig(type="s3", path="_nuxt"),
            # BehaviorConfig(type="proxy", path="api", endpoint="https://api.example.com"),
        ],
    )
"""


def get_site_app_path() -> tuple[Path, bool]:
    cwd = Path.cwd()
    logger.info("CWD %s", cwd)
    site_app_path = cwd / APP_FILE
    return site_app_path, site_app_path.exists() and site_app_path.is_file()


def create_site_app_file(site_app_path: Path) -> None:
    file_content = textwrap.dedent(TEMPLATE_CONTENT).format(project_name=Path.cwd().name)
    with site_app_path.open("w", encoding="utf-8") as f:
        f.write(file_content)
