"""
Proxy control core configuration.
"""

from dataclasses import dataclass


@dataclass(frozen=True, kw_only=True)
class ProxyControlConfig:
    """
    Attributes:
        nat_probe_timeout: Seconds before NAT classification gives up and
            returns the timeout sentinel.
        nat_cache_ttl: Seconds a NAT classification stays cached.
        reproxy_host: Address of the local SOCKS listener.
        reproxy_timeout: Seconds to wait for the SOCKS auth response.
        cloud_provider_name: The only supported cloud provider.
        cloud_provider_module_prefix: Prefix of loadable cloud provider modules.
        cloud_installer_module: Name of the installer module.
        cloud_droplet_name: Name of the provisioned cloud server.
        cloud_deploy_progress: Percentage of install progress devoted to deploying.
        cloud_install_user: SSH user the installer logs in as.
        report_front_url: Fronting domain the bug report is posted through.
        report_host: Real destination host of the bug report.
        ping_interval: Seconds between connectivity pings.
        http_timeout: Request timeout in seconds.
        user_agent: User-Agent header value.
        log_buffer_size: Maximum number of log lines kept for diagnostics.
    """

    nat_probe_timeout: float = 30.0
    nat_cache_ttl: float = 300.0
    reproxy_host: str = "127.0.0.1"
    reproxy_timeout: float = 5.0
    cloud_provider_name: str = "digitalocean"
    cloud_provider_module_prefix: str = "CLOUDPROVIDER-"
    cloud_installer_module: str = "cloudinstall"
    cloud_droplet_name: str = "proxy-cloud-server"
    cloud_deploy_progress: int = 20
    cloud_install_user: str = "root"
    report_front_url: str = "https://a0.awsstatic.com/"
    report_host: str = "d1wtwocg4wx1ih.cloudfront.net"
    ping_interval: float = 5.0
    http_timeout: float = 30.0
    user_agent: str = "ProxyControl-Python/0.1"
    log_buffer_size: int = 10000

    def __post_init__(self) -> None:
        if self.nat_probe_timeout <= 0:
            msg = "nat_probe_timeout must be positive"
            raise ValueError(msg)
        if self.nat_cache_ttl <= 0:
            msg = "nat_cache_ttl must be positive"
            raise ValueError(msg)
        if self.reproxy_timeout <= 0:
            msg = "reproxy_timeout must be positive"
            raise ValueError(msg)
        if not 0 <= self.cloud_deploy_progress <= 100:
            msg = "cloud_deploy_progress must be between 0 and 100"
            raise ValueError(msg)
        if self.ping_interval <= 0:
            msg = "ping_interval must be positive"
            raise ValueError(msg)
        if self.http_timeout <= 0:
            msg = "http_timeout must be positive"
            raise ValueError(msg)
        if self.log_buffer_size <= 0:
            msg = "log_buffer_size must be positive"
            raise ValueError(msg)

    @property
    def cloud_provider_module(self) -> str:
        """Full module name of the supported cloud provider."""
        return self.cloud_provider_module_prefix + self.cloud_provider_name
