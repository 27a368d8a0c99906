from job_backup.hierarchy.interfaces import IItemHierarchy
from job_backup.hierarchy.jenkins_home import JenkinsHomeHierarchy

__all__ = ["IItemHierarchy", "JenkinsHomeHierarchy"]
