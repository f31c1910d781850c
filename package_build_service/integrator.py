# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
""" Moves the results of finished jobs into the local repository. """

import logging
import os
import shutil
import tempfile

from package_build_service.common.models import PackageStatus

log = logging.getLogger(__name__)


def match_output(filename, outputs):
    """ Return the declared output name the artifact `filename` belongs to.

    An artifact belongs to an output when it is named after it, optionally
    followed by "-<version>" or ".<extension>". The longest matching output
    name wins, so "foo-devel-1.0.tar" belongs to "foo-devel" rather than to
    "foo".
    """
    best = None
    for name in outputs:
        if filename == name or filename.startswith(name + "-") \
                or filename.startswith(name + "."):
            if best is None or len(name) > len(best):
                best = name
    return best


class ArtifactIntegrator(object):
    def __init__(self, local_repo, history):
        """
        :param LocalRepository local_repo: the repository receiving artifacts
        :param BuildHistory history: log of finished builds
        """
        self.local_repo = local_repo
        self.history = history

    def integrate(self, job):
        """ Record a finished job; publish its outputs if it succeeded.

        :return: dict of binary name -> artifact file name now provided by
            the package, empty for a failed job
        """
        binaries = {}
        if job.status == PackageStatus.succeeded:
            try:
                binaries = self._publish(job)
            except OSError as e:
                log.error("Can't integrate the artifacts of %s: %s", job.package.name, e)
                job.status = PackageStatus.failed
                job.state_reason = "can't integrate the artifacts: %s" % (e.strerror or e)
        self.history.append(job)
        return binaries

    def _publish(self, job):
        package = job.package
        selected = {}
        for filename in job.artifacts:
            output = match_output(filename, package.provides)
            if output is None:
                log.debug("Dropping artifact %s of %s, it is not a declared output",
                          filename, package.name)
                continue
            selected.setdefault(output, filename)
            if selected[output] != filename:
                log.warning("%s produced more than one artifact for %s, using %s",
                            package.name, output, selected[output])

        missing = [name for name in package.provides if name not in selected]
        if missing:
            log.warning("Build of %s did not produce %s", package.name, ", ".join(missing))

        target = self.local_repo.package_dir(package.name)
        os.makedirs(self.local_repo.location, exist_ok=True)
        staging = tempfile.mkdtemp(prefix=".%s." % package.name, dir=self.local_repo.location)
        for filename in sorted(set(selected.values())):
            shutil.move(os.path.join(job.resultdir, filename), os.path.join(staging, filename))

        # Swap the new content in, keeping the previous one until it's done
        previous = None
        if os.path.exists(target):
            previous = tempfile.mkdtemp(
                prefix=".%s.old." % package.name, dir=self.local_repo.location)
            os.rmdir(previous)
            os.rename(target, previous)
        os.rename(staging, target)
        if previous is not None:
            shutil.rmtree(previous, ignore_errors=True)

        dropped = set(self.local_repo.binaries_of(package.name)) - set(selected)
        if dropped:
            log.info("%s no longer provides %s", package.name, ", ".join(sorted(dropped)))
        self.local_repo.update_package(package.name, selected)
        log.info("Integrated %d binaries of %s into the local repository",
                 len(selected), package.name)
        return selected
