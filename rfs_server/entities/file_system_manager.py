import errno
import logging
import os
import shutil
import tempfile
import threading
import uuid
from contextlib import contextmanager

logger = logging.getLogger("rfs.server.file_system_manager")

ENCODING = "utf-8"
STAGING_PREFIX = ".rfs-"
STAGING_SUFFIX = ".part"

# Modo pedido para archivos nuevos; el kernel aplica la umask del proceso
NEW_FILE_MODE = 0o666


class NotARegularFileError(OSError):
    """El path existe pero no es un archivo regular ni un directorio (fifo, socket, device...)."""
    pass


class FileLockManager:
    """Administra locks por ruta (in-memory). Serializa las mutaciones de este proceso.

    Cada entrada cuenta sus usuarios y se elimina cuando el último la libera.
    """

    def __init__(self):
        self._locks = {}
        self._global_lock = threading.Lock()

    def _checkout(self, key):
        with self._global_lock:
            entry = self._locks.get(key)
            if entry is None:
                entry = [threading.RLock(), 0]
                self._locks[key] = entry
            entry[1] += 1
            return entry[0]

    def _checkin(self, key):
        with self._global_lock:
            entry = self._locks[key]
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    @contextmanager
    def acquire(self, *paths):
        """Context manager que adquiere los locks de uno o más paths.

        Los locks se toman en orden lexicográfico para evitar deadlocks.
        """
        keys = sorted({os.path.abspath(p) for p in paths})
        locks = [self._checkout(key) for key in keys]
        acquired = []
        try:
            for lock in locks:
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            for key in keys:
                self._checkin(key)


def _open_staging_file(parent):
    """Crea un temporal único en `parent` con los permisos de un archivo nuevo."""
    while True:
        path = os.path.join(parent, STAGING_PREFIX + uuid.uuid4().hex + STAGING_SUFFIX)
        try:
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, NEW_FILE_MODE)
        except FileExistsError:
            continue
        return path, os.fdopen(fd, "w", encoding=ENCODING, newline="\n")


class StagedWrite:
    """Cuerpo de un WRITE escrito en un temporal junto al destino.

    commit() agrega el contenido al destino (o lo publica con un rename si el
    destino no existe); discard() elimina el temporal sin tocar el destino.
    """

    def __init__(self, fs_manager, target):
        self.fs_manager = fs_manager
        self.target = target
        self.tmp_path, self.file = _open_staging_file(fs_manager.parent_of(target))
        self.lines_written = 0

    def write_line(self, line: str) -> None:
        self.file.write(line + "\n")
        self.lines_written += 1

    def commit(self) -> None:
        try:
            self.file.flush()
            os.fsync(self.file.fileno())
            self.file.close()
            self.fs_manager.publish_append(self.tmp_path, self.target)
        except Exception:
            self.discard()
            raise

    def discard(self) -> None:
        if not self.file.closed:
            self.file.close()
        if os.path.exists(self.tmp_path):
            os.remove(self.tmp_path)


class FileSystemManager:
    """
    Operaciones sobre el filesystem local usadas por los handlers.

    Contrato:
    - Los paths se usan tal cual los envía el cliente (absolutos o relativos al
      directorio de trabajo del servidor). No hay sandbox.
    - validate_path() clasifica un path antes de cualquier mutación.
    - Éxito = no excepción; fallo = OSError (FileNotFoundError,
      NotADirectoryError, IsADirectoryError, FileExistsError,
      NotARegularFileError) o el OSError original de la llamada al sistema.
    - WRITE agrega al archivo real bajo el lock del destino (respeta symlinks,
      hard links, dueño y permisos); sólo un destino nuevo se publica con
      os.replace. COPY publica mediante temporal + os.replace.
    """

    def __init__(self):
        self.lock_mgr = FileLockManager()

    # --------------------------- Path utils ---------------------------

    def parent_of(self, path):
        """Directorio padre de `path` (resuelto contra el cwd del proceso)."""
        return os.path.dirname(os.path.abspath(path))

    # --------------------------- Validation ---------------------------

    def validate_path(self, path, want="any"):
        """
        Valida la existencia y tipo del path.
        want = "any" | "file" | "dir"
        Retorna el path si es válido.
        """
        if not path or not os.path.exists(path):
            raise FileNotFoundError(errno.ENOENT, "Path not found", path)

        if want == "any":
            return path
        if want == "file":
            if os.path.isfile(path):
                return path
            if os.path.isdir(path):
                raise IsADirectoryError(errno.EISDIR, "Not a file", path)
            raise NotARegularFileError(errno.EINVAL, "Not a regular file", path)
        if want == "dir":
            if os.path.isdir(path):
                return path
            raise NotADirectoryError(errno.ENOTDIR, "Not a directory", path)

        raise ValueError(f"Invalid want parameter: {want}")

    # --------------------------- Directory ops ---------------------------

    def list_dir(self, path):
        """Lista las entradas inmediatas del directorio como '<path>/<nombre>'."""
        self.validate_path(path, want="dir")
        return [os.path.join(path, entry) for entry in sorted(os.listdir(path))]

    def make_dir(self, path):
        """Crea el directorio y sus padres.

        Retorna True si se creó, False si ya existía como directorio.
        Lanza FileExistsError si el path existe y no es un directorio.
        """
        if os.path.isdir(path):
            return False
        if os.path.lexists(path):
            raise FileExistsError(errno.EEXIST, "Path exists but is not a directory", path)

        os.makedirs(path, exist_ok=True)
        logger.info("Directory created: %s", path)
        return True

    # --------------------------- File ops ---------------------------

    def read_lines(self, path):
        """Retorna un generador con las líneas del archivo (sin terminador).

        Las validaciones ocurren antes de devolver el generador; los errores de
        apertura o lectura se producen al iterar.
        """
        self.validate_path(path, want="file")

        def _gen():
            with open(path, "r", encoding=ENCODING, errors="replace", newline=None) as f:
                for line in f:
                    if line.endswith("\n"):
                        line = line[:-1]
                    yield line
        return _gen()

    def stage_write(self, path):
        """Abre un StagedWrite para el destino. Falla si el directorio padre no existe."""
        return StagedWrite(self, path)

    def publish_append(self, staged_path, target):
        """Agrega el contenido de `staged_path` al final de `target`.

        Si `target` no existe el temporal se renombra en su lugar. Si existe, el
        cuerpo se agrega al archivo real (siguiendo symlinks) con open("ab").
        """
        with self.lock_mgr.acquire(target, os.path.realpath(target)):
            if not os.path.lexists(target):
                os.replace(staged_path, target)
                logger.info("File created: %s", target)
                return

            if os.path.isdir(target):
                raise IsADirectoryError(errno.EISDIR, "Not a file", target)
            if not os.path.isfile(target):
                raise NotARegularFileError(errno.EINVAL, "Not a regular file", target)

            with open(staged_path, "rb") as body, open(target, "ab") as current:
                shutil.copyfileobj(body, current)
                current.flush()
                os.fsync(current.fileno())

            os.remove(staged_path)
            logger.info("File appended: %s", target)

    def copy_file(self, source, target):
        """Copia los bytes de `source` en `target`, sobrescribiéndolo si existe."""
        self.validate_path(source, want="file")
        parent = self.parent_of(target)

        with self.lock_mgr.acquire(source, target):
            self._copy_via_staging(source, target, parent)
        logger.info("File copied: %s -> %s", source, target)

    def move_file(self, source, destination_dir):
        """Mueve `source` dentro de `destination_dir` conservando el nombre.

        Sobrescribe un archivo con el mismo nombre. Retorna el path final.
        """
        self.validate_path(source, want="file")
        self.validate_path(destination_dir, want="dir")
        target = os.path.join(destination_dir, os.path.basename(source))

        with self.lock_mgr.acquire(source, target):
            try:
                os.replace(source, target)
            except OSError as e:
                if e.errno != errno.EXDEV:
                    raise
                # Distinto filesystem: copiar y luego borrar el origen
                self._copy_via_staging(source, target, self.parent_of(target))
                os.remove(source)

        logger.info("File moved: %s -> %s", source, target)
        return target

    def _copy_via_staging(self, source, target, parent):
        with tempfile.NamedTemporaryFile(dir=parent, prefix=STAGING_PREFIX, suffix=STAGING_SUFFIX,
                                         delete=False) as tmp:
            tmp_path = tmp.name
        try:
            shutil.copyfile(source, tmp_path)
            shutil.copymode(source, tmp_path)
            os.replace(tmp_path, target)
        except Exception:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
