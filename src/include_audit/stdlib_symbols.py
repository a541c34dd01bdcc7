# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Built-in symbol tables for standard, POSIX and common platform headers.

Each table lists the unqualified names a header provides. Usages are matched
by literal name, so std::cout, cout after "using namespace std;" and
::getcwd all match their bare spelling here.

Tables are curated rather than exhaustive. A name is left out when it is far
more often a member function of some unrelated class than a use of the free
function (begin, end, size, empty), since member calls would otherwise keep
headers alive that nothing needs. C headers are also reachable under their
C++ spelling (<stdio.h> and <cstdio> share one table).
"""

from typing import Dict, FrozenSet, Optional


def _names(text: str) -> FrozenSet[str]:
    return frozenset(text.split())


_C_HEADERS: Dict[str, FrozenSet[str]] = {
    "assert.h": _names("assert static_assert"),
    "ctype.h": _names(
        "isalnum isalpha isblank iscntrl isdigit isgraph islower isprint ispunct isspace "
        "isupper isxdigit tolower toupper"
    ),
    "errno.h": _names(
        "errno EDOM ERANGE EILSEQ EINTR EAGAIN ENOENT EEXIST EACCES EINVAL ENOMEM EBADF EPERM"
    ),
    "fenv.h": _names(
        "fenv_t fexcept_t feclearexcept fegetexceptflag feraiseexcept fesetexceptflag fetestexcept "
        "fegetround fesetround fegetenv feholdexcept fesetenv feupdateenv FE_ALL_EXCEPT "
        "FE_DIVBYZERO FE_INEXACT FE_INVALID FE_OVERFLOW FE_UNDERFLOW FE_DOWNWARD FE_TONEAREST "
        "FE_TOWARDZERO FE_UPWARD"
    ),
    "float.h": _names(
        "FLT_RADIX FLT_MANT_DIG DBL_MANT_DIG LDBL_MANT_DIG FLT_DIG DBL_DIG LDBL_DIG FLT_MIN_EXP "
        "DBL_MIN_EXP FLT_MAX_EXP DBL_MAX_EXP FLT_MAX DBL_MAX LDBL_MAX FLT_EPSILON DBL_EPSILON "
        "LDBL_EPSILON FLT_MIN DBL_MIN LDBL_MIN DECIMAL_DIG FLT_EVAL_METHOD"
    ),
    "inttypes.h": _names(
        "imaxdiv_t imaxabs imaxdiv strtoimax strtoumax wcstoimax wcstoumax PRId8 PRId16 PRId32 "
        "PRId64 PRIi32 PRIi64 PRIu8 PRIu16 PRIu32 PRIu64 PRIx32 PRIx64 PRIX32 PRIX64 PRIdMAX "
        "PRIuMAX PRIdPTR PRIuPTR PRIxPTR SCNd32 SCNd64 SCNu32 SCNu64"
    ),
    "limits.h": _names(
        "CHAR_BIT SCHAR_MIN SCHAR_MAX UCHAR_MAX CHAR_MIN CHAR_MAX MB_LEN_MAX SHRT_MIN SHRT_MAX "
        "USHRT_MAX INT_MIN INT_MAX UINT_MAX LONG_MIN LONG_MAX ULONG_MAX LLONG_MIN LLONG_MAX "
        "ULLONG_MAX PATH_MAX"
    ),
    "locale.h": _names(
        "lconv setlocale localeconv LC_ALL LC_COLLATE LC_CTYPE LC_MONETARY LC_NUMERIC LC_TIME"
    ),
    "math.h": _names(
        "sqrt cbrt pow exp exp2 expm1 log log2 log10 log1p sin cos tan asin acos atan atan2 sinh "
        "cosh tanh asinh acosh atanh ceil floor round lround llround trunc fmod remainder fabs "
        "fabsf fabsl abs fmin fmax fdim fma hypot frexp ldexp modf scalbn ilogb logb nextafter "
        "copysign nan isnan isinf isfinite isnormal signbit fpclassify erf erfc tgamma lgamma "
        "rint lrint nearbyint sqrtf powf sinf cosf expf logf HUGE_VAL HUGE_VALF INFINITY NAN "
        "FP_INFINITE FP_NAN FP_NORMAL FP_SUBNORMAL FP_ZERO M_PI M_E M_SQRT2 M_LN2 M_LN10 "
        "M_PI_2 M_PI_4 M_1_PI M_2_PI M_LOG2E M_LOG10E"
    ),
    "setjmp.h": _names("jmp_buf setjmp longjmp"),
    "signal.h": _names(
        "sig_atomic_t signal raise kill sigaction sigemptyset sigfillset sigaddset sigdelset "
        "sigismember sigprocmask sigset_t SIG_DFL SIG_IGN SIG_ERR SIGABRT SIGFPE SIGILL SIGINT "
        "SIGSEGV SIGTERM SIGKILL SIGHUP SIGPIPE SIGCHLD SIGUSR1 SIGUSR2 SIGALRM"
    ),
    "stdarg.h": _names("va_list va_start va_arg va_end va_copy"),
    "stdbool.h": _names("bool true false __bool_true_false_are_defined"),
    "stddef.h": _names("size_t ptrdiff_t nullptr_t max_align_t NULL offsetof"),
    "stdint.h": _names(
        "int8_t int16_t int32_t int64_t uint8_t uint16_t uint32_t uint64_t int_least8_t "
        "int_least16_t int_least32_t int_least64_t uint_least8_t uint_least16_t uint_least32_t "
        "uint_least64_t int_fast8_t int_fast16_t int_fast32_t int_fast64_t uint_fast8_t "
        "uint_fast16_t uint_fast32_t uint_fast64_t intptr_t uintptr_t intmax_t uintmax_t "
        "INT8_MIN INT8_MAX INT16_MIN INT16_MAX INT32_MIN INT32_MAX INT64_MIN INT64_MAX UINT8_MAX "
        "UINT16_MAX UINT32_MAX UINT64_MAX INTPTR_MAX UINTPTR_MAX SIZE_MAX INTMAX_MAX UINTMAX_MAX "
        "INT32_C INT64_C UINT32_C UINT64_C"
    ),
    "stdio.h": _names(
        "FILE fpos_t size_t NULL EOF BUFSIZ FILENAME_MAX FOPEN_MAX L_tmpnam TMP_MAX SEEK_SET "
        "SEEK_CUR SEEK_END stdin stdout stderr printf fprintf sprintf snprintf vprintf vfprintf "
        "vsprintf vsnprintf scanf fscanf sscanf vscanf vfscanf vsscanf fopen freopen fclose "
        "fflush fread fwrite fgetc fgets fputc fputs getc getchar gets putc putchar puts ungetc "
        "fseek ftell rewind fgetpos fsetpos feof ferror clearerr perror remove rename tmpfile "
        "tmpnam setbuf setvbuf fileno popen pclose getline _IOFBF _IOLBF _IONBF"
    ),
    "stdlib.h": _names(
        "size_t NULL div_t ldiv_t lldiv_t EXIT_SUCCESS EXIT_FAILURE RAND_MAX MB_CUR_MAX malloc "
        "calloc realloc free aligned_alloc abort exit _Exit quick_exit atexit at_quick_exit "
        "getenv setenv unsetenv putenv system atoi atol atoll atof strtol strtoll strtoul "
        "strtoull strtod strtof strtold rand srand qsort bsearch abs labs llabs div ldiv lldiv "
        "mblen mbtowc wctomb mbstowcs wcstombs realpath mkstemp posix_memalign"
    ),
    "string.h": _names(
        "size_t NULL memcpy memmove memset memcmp memchr strcpy strncpy strcat strncat strcmp "
        "strncmp strcoll strxfrm strchr strrchr strspn strcspn strpbrk strstr strtok strlen "
        "strerror strdup strndup strnlen strtok_r strsep strcasecmp strncasecmp"
    ),
    "time.h": _names(
        "time_t clock_t tm timespec CLOCKS_PER_SEC clock time difftime mktime asctime ctime "
        "gmtime localtime strftime gmtime_r localtime_r nanosleep clock_gettime timespec_get "
        "CLOCK_REALTIME CLOCK_MONOTONIC"
    ),
    "uchar.h": _names("char16_t char32_t mbrtoc16 c16rtomb mbrtoc32 c32rtomb"),
    "wchar.h": _names(
        "wchar_t wint_t mbstate_t WEOF WCHAR_MIN WCHAR_MAX wprintf fwprintf swprintf wscanf "
        "fwscanf swscanf fgetwc fgetws fputwc fputws getwc getwchar putwc putwchar wcslen "
        "wcscpy wcsncpy wcscat wcsncat wcscmp wcsncmp wcschr wcsrchr wcsstr wcstok wcstol "
        "wcstoul wcstod wmemcpy wmemmove wmemset wmemcmp wmemchr mbrtowc wcrtomb mbsrtowcs "
        "wcsrtombs btowc wctob"
    ),
    "wctype.h": _names(
        "wctrans_t wctype_t iswalnum iswalpha iswblank iswcntrl iswdigit iswgraph iswlower "
        "iswprint iswpunct iswspace iswupper iswxdigit towlower towupper wctype iswctype wctrans "
        "towctrans"
    ),
}

_POSIX_HEADERS: Dict[str, FrozenSet[str]] = {
    "unistd.h": _names(
        "access alarm chdir chown close dup dup2 execl execle execlp execv execve execvp _exit "
        "fork fsync ftruncate getcwd getegid geteuid getgid getgroups gethostname getlogin "
        "getopt optarg optind opterr optopt getpgrp getpid getppid getuid isatty link lseek "
        "pipe read readlink rmdir setgid setsid setuid sleep symlink sysconf truncate unlink "
        "usleep write pid_t uid_t gid_t off_t ssize_t STDIN_FILENO STDOUT_FILENO STDERR_FILENO "
        "R_OK W_OK X_OK F_OK _SC_PAGESIZE _SC_NPROCESSORS_ONLN"
    ),
    "pwd.h": _names(
        "passwd getpwnam getpwuid getpwnam_r getpwuid_r getpwent setpwent endpwent pw_name"
    ),
    "grp.h": _names("group getgrnam getgrgid getgrent setgrent endgrent"),
    "sys/types.h": _names(
        "pid_t uid_t gid_t off_t ssize_t size_t mode_t dev_t ino_t nlink_t blksize_t blkcnt_t "
        "time_t id_t key_t u_int8_t u_int16_t u_int32_t u_int64_t"
    ),
    "sys/stat.h": _names(
        "stat fstat lstat chmod fchmod mkdir mkfifo umask mode_t S_ISDIR S_ISREG S_ISLNK S_ISCHR "
        "S_ISBLK S_ISFIFO S_IRUSR S_IWUSR S_IXUSR S_IRWXU S_IRGRP S_IWGRP S_IXGRP S_IROTH S_IWOTH "
        "S_IXOTH S_IFMT S_IFDIR S_IFREG"
    ),
    "sys/mman.h": _names(
        "mmap munmap mprotect msync mlock munlock madvise shm_open shm_unlink PROT_READ "
        "PROT_WRITE PROT_EXEC PROT_NONE MAP_SHARED MAP_PRIVATE MAP_ANONYMOUS MAP_FAILED MS_SYNC"
    ),
    "sys/time.h": _names(
        "timeval timezone gettimeofday settimeofday setitimer getitimer itimerval"
    ),
    "sys/socket.h": _names(
        "socket bind listen accept connect send recv sendto recvfrom setsockopt getsockopt "
        "shutdown socklen_t sockaddr sockaddr_storage AF_INET AF_INET6 AF_UNIX SOCK_STREAM "
        "SOCK_DGRAM SOL_SOCKET SO_REUSEADDR SHUT_RDWR"
    ),
    "sys/wait.h": _names("wait waitpid WIFEXITED WEXITSTATUS WIFSIGNALED WTERMSIG WNOHANG"),
    "sys/ioctl.h": _names("ioctl winsize TIOCGWINSZ"),
    "sys/select.h": _names("select fd_set FD_SET FD_CLR FD_ISSET FD_ZERO"),
    "sys/epoll.h": _names(
        "epoll_create epoll_create1 epoll_ctl epoll_wait epoll_event EPOLLIN EPOLLOUT EPOLLERR "
        "EPOLLET EPOLL_CTL_ADD EPOLL_CTL_DEL EPOLL_CTL_MOD"
    ),
    "netinet/in.h": _names(
        "sockaddr_in sockaddr_in6 in_addr in6_addr in_port_t in_addr_t htons htonl ntohs ntohl "
        "INADDR_ANY INADDR_LOOPBACK IPPROTO_TCP IPPROTO_UDP"
    ),
    "arpa/inet.h": _names("inet_addr inet_ntoa inet_pton inet_ntop"),
    "netdb.h": _names("addrinfo getaddrinfo freeaddrinfo gai_strerror gethostbyname hostent"),
    "fcntl.h": _names(
        "open openat creat fcntl O_RDONLY O_WRONLY O_RDWR O_CREAT O_EXCL O_TRUNC O_APPEND "
        "O_NONBLOCK O_CLOEXEC F_GETFL F_SETFL F_GETFD F_SETFD FD_CLOEXEC"
    ),
    "dirent.h": _names("DIR dirent opendir readdir closedir rewinddir d_name scandir alphasort"),
    "dlfcn.h": _names("dlopen dlsym dlclose dlerror RTLD_LAZY RTLD_NOW RTLD_GLOBAL RTLD_LOCAL"),
    "pthread.h": _names(
        "pthread_t pthread_attr_t pthread_mutex_t pthread_cond_t pthread_once_t pthread_key_t "
        "pthread_create pthread_join pthread_detach pthread_exit pthread_self pthread_equal "
        "pthread_mutex_init pthread_mutex_destroy pthread_mutex_lock pthread_mutex_unlock "
        "pthread_mutex_trylock pthread_cond_init pthread_cond_destroy pthread_cond_wait "
        "pthread_cond_signal pthread_cond_broadcast pthread_once PTHREAD_MUTEX_INITIALIZER "
        "PTHREAD_COND_INITIALIZER"
    ),
    "semaphore.h": _names(
        "sem_t sem_init sem_destroy sem_wait sem_post sem_trywait sem_open sem_close"
    ),
    "execinfo.h": _names("backtrace backtrace_symbols backtrace_symbols_fd"),
    "syslog.h": _names(
        "openlog syslog closelog LOG_ERR LOG_WARNING LOG_INFO LOG_DEBUG LOG_PID LOG_USER"
    ),
    "termios.h": _names("termios tcgetattr tcsetattr TCSANOW ECHO ICANON"),
    "poll.h": _names("poll pollfd POLLIN POLLOUT POLLERR"),
    "linux/limits.h": _names("PATH_MAX NAME_MAX ARG_MAX PIPE_BUF"),
}

_WINDOWS_HEADERS: Dict[str, FrozenSet[str]] = {
    "windows.h": _names(
        "BOOL BYTE WORD DWORD HANDLE HMODULE HINSTANCE HWND LPSTR LPCSTR LPWSTR LPCWSTR LPVOID "
        "TRUE FALSE MAX_PATH INVALID_HANDLE_VALUE UNLEN GetUserName GetUserNameA GetUserNameW "
        "GetLastError CloseHandle CreateFile CreateFileA CreateFileW ReadFile WriteFile Sleep "
        "GetCurrentDirectory GetCurrentDirectoryA SetCurrentDirectory GetModuleHandle "
        "GetModuleFileName LoadLibrary LoadLibraryA GetProcAddress FreeLibrary CreateThread "
        "WaitForSingleObject CreateMutex ReleaseMutex CreateEvent SetEvent GetTickCount "
        "GetTickCount64 QueryPerformanceCounter QueryPerformanceFrequency MessageBox "
        "MessageBoxA WINAPI CALLBACK"
    ),
    "direct.h": _names("_getcwd _chdir _mkdir _rmdir _getdrive _getdcwd"),
    "io.h": _names("_access _open _close _read _write _lseek _findfirst _findnext _findclose"),
    "winsock2.h": _names(
        "SOCKET WSADATA WSAStartup WSACleanup WSAGetLastError closesocket ioctlsocket "
        "INVALID_SOCKET SOCKET_ERROR"
    ),
    "conio.h": _names("_getch _kbhit getch kbhit"),
}

_CPP_HEADERS: Dict[str, FrozenSet[str]] = {
    "algorithm": _names(
        "sort stable_sort partial_sort nth_element is_sorted find find_if find_if_not "
        "find_end find_first_of adjacent_find count_if mismatch equal search search_n "
        "copy copy_if copy_n copy_backward move_backward fill_n transform generate "
        "generate_n remove_if remove_copy remove_copy_if replace replace_if replace_copy "
        "unique unique_copy reverse reverse_copy rotate rotate_copy shuffle random_shuffle "
        "partition stable_partition is_partitioned lower_bound upper_bound binary_search "
        "equal_range merge inplace_merge includes set_union set_intersection "
        "set_difference set_symmetric_difference make_heap push_heap pop_heap sort_heap "
        "is_heap min max minmax min_element max_element minmax_element clamp "
        "lexicographical_compare next_permutation prev_permutation all_of any_of none_of "
        "for_each for_each_n sample iter_swap swap_ranges"
    ),
    "any": _names("any any_cast bad_any_cast make_any"),
    "array": _names("array to_array"),
    "atomic": _names(
        "atomic atomic_flag atomic_bool atomic_int atomic_uint atomic_long atomic_size_t "
        "memory_order memory_order_relaxed memory_order_acquire memory_order_release "
        "memory_order_acq_rel memory_order_seq_cst atomic_thread_fence ATOMIC_FLAG_INIT"
    ),
    "bitset": _names("bitset"),
    "cassert": _names("assert"),
    "charconv": _names("from_chars to_chars chars_format from_chars_result to_chars_result"),
    "chrono": _names(
        "chrono duration time_point system_clock steady_clock high_resolution_clock "
        "duration_cast time_point_cast nanoseconds microseconds milliseconds seconds minutes "
        "hours days years floor ceil treat_as_floating_point"
    ),
    "codecvt": _names("codecvt_utf8 codecvt_utf16 codecvt_utf8_utf16 wstring_convert"),
    "complex": _names("complex real imag arg norm conj polar proj"),
    "concepts": _names(
        "same_as derived_from convertible_to common_reference_with common_with integral "
        "signed_integral unsigned_integral floating_point assignable_from swappable "
        "destructible constructible_from default_initializable move_constructible "
        "copy_constructible equality_comparable totally_ordered movable copyable semiregular "
        "regular invocable regular_invocable predicate relation"
    ),
    "condition_variable": _names(
        "condition_variable condition_variable_any cv_status notify_all_at_thread_exit"
    ),
    "cstddef": _names("size_t ptrdiff_t nullptr_t max_align_t byte NULL offsetof to_integer"),
    "deque": _names("deque"),
    "exception": _names(
        "exception bad_exception exception_ptr current_exception rethrow_exception "
        "make_exception_ptr nested_exception throw_with_nested rethrow_if_nested terminate "
        "set_terminate uncaught_exceptions"
    ),
    "execution": _names("execution seq par par_unseq unseq sequenced_policy parallel_policy"),
    "filesystem": _names(
        "filesystem path directory_entry directory_iterator recursive_directory_iterator "
        "file_status file_type perms space_info filesystem_error exists is_directory "
        "is_regular_file is_symlink create_directory create_directories current_path "
        "absolute canonical relative proximate remove_all copy_file rename file_size "
        "last_write_time temp_directory_path status"
    ),
    "format": _names(
        "format format_to format_to_n formatted_size vformat make_format_args formatter"
    ),
    "forward_list": _names("forward_list"),
    "fstream": _names(
        "fstream ifstream ofstream filebuf basic_fstream basic_ifstream basic_ofstream"
    ),
    "functional": _names(
        "function bind bind_front ref cref reference_wrapper invoke mem_fn not_fn hash "
        "plus minus multiplies divides modulus negate equal_to not_equal_to greater less "
        "greater_equal less_equal logical_and logical_or logical_not bit_and bit_or bit_xor "
        "placeholders bad_function_call identity"
    ),
    "future": _names(
        "future shared_future promise packaged_task async launch future_status future_error"
    ),
    "initializer_list": _names("initializer_list"),
    "iomanip": _names(
        "setw setfill setprecision setbase setiosflags resetiosflags get_money put_money "
        "get_time put_time quoted"
    ),
    "ios": _names(
        "ios ios_base basic_ios streamsize streamoff fpos boolalpha noboolalpha showbase "
        "noshowbase showpoint showpos skipws noskipws uppercase nouppercase left right "
        "internal dec hex oct fixed scientific hexfloat defaultfloat"
    ),
    "iosfwd": _names("istream ostream iostream ifstream ofstream stringstream streambuf"),
    "iostream": _names(
        "cout cin cerr clog wcout wcin wcerr wclog endl flush ws istream ostream iostream "
        "ends hex dec oct fixed scientific boolalpha"
    ),
    "istream": _names("istream basic_istream iostream ws"),
    "iterator": _names(
        "iterator_traits iterator reverse_iterator move_iterator back_inserter "
        "front_inserter inserter back_insert_iterator front_insert_iterator insert_iterator "
        "istream_iterator ostream_iterator istreambuf_iterator ostreambuf_iterator advance "
        "distance next prev make_reverse_iterator make_move_iterator input_iterator_tag "
        "output_iterator_tag forward_iterator_tag bidirectional_iterator_tag "
        "random_access_iterator_tag"
    ),
    "limits": _names("numeric_limits float_round_style float_denorm_style"),
    "list": _names("list"),
    "locale": _names("locale use_facet has_facet isspace isalpha ctype collate numpunct"),
    "map": _names("map multimap"),
    "memory": _names(
        "unique_ptr shared_ptr weak_ptr make_unique make_shared allocate_shared "
        "enable_shared_from_this allocator allocator_traits pointer_traits default_delete "
        "static_pointer_cast dynamic_pointer_cast const_pointer_cast reinterpret_pointer_cast "
        "owner_less bad_weak_ptr addressof align uninitialized_copy uninitialized_fill "
        "destroy_at construct_at"
    ),
    "memory_resource": _names(
        "pmr memory_resource polymorphic_allocator monotonic_buffer_resource "
        "unsynchronized_pool_resource synchronized_pool_resource new_delete_resource "
        "null_memory_resource get_default_resource set_default_resource"
    ),
    "mutex": _names(
        "mutex recursive_mutex timed_mutex recursive_timed_mutex lock_guard unique_lock "
        "scoped_lock once_flag call_once defer_lock try_to_lock adopt_lock try_lock"
    ),
    "new": _names(
        "bad_alloc bad_array_new_length nothrow nothrow_t align_val_t launder set_new_handler"
    ),
    "numbers": _names("numbers pi e sqrt2 ln2 ln10 phi egamma"),
    "numeric": _names(
        "accumulate reduce transform_reduce inner_product adjacent_difference partial_sum "
        "inclusive_scan exclusive_scan iota gcd lcm midpoint"
    ),
    "optional": _names("optional nullopt nullopt_t make_optional bad_optional_access"),
    "ostream": _names("ostream basic_ostream endl ends flush"),
    "queue": _names("queue priority_queue"),
    "random": _names(
        "random_device mt19937 mt19937_64 minstd_rand default_random_engine "
        "uniform_int_distribution uniform_real_distribution normal_distribution "
        "bernoulli_distribution binomial_distribution poisson_distribution "
        "exponential_distribution discrete_distribution seed_seq generate_canonical"
    ),
    "ranges": _names("ranges views range view subrange iota_view"),
    "ratio": _names(
        "ratio ratio_add ratio_subtract ratio_multiply ratio_divide milli micro nano kilo mega"
    ),
    "regex": _names(
        "regex wregex basic_regex regex_match regex_search regex_replace smatch cmatch wsmatch "
        "match_results sub_match sregex_iterator sregex_token_iterator regex_error regex_constants"
    ),
    "scoped_allocator": _names("scoped_allocator_adaptor"),
    "set": _names("set multiset"),
    "shared_mutex": _names("shared_mutex shared_timed_mutex shared_lock"),
    "span": _names("span dynamic_extent as_bytes as_writable_bytes"),
    "sstream": _names(
        "stringstream istringstream ostringstream stringbuf basic_stringstream "
        "basic_istringstream basic_ostringstream wstringstream"
    ),
    "stack": _names("stack"),
    "stdexcept": _names(
        "logic_error domain_error invalid_argument length_error out_of_range runtime_error "
        "range_error overflow_error underflow_error"
    ),
    "streambuf": _names("streambuf basic_streambuf"),
    "string": _names(
        "string wstring u16string u32string u8string basic_string char_traits to_string "
        "to_wstring stoi stol stoll stoul stoull stof stod stold getline"
    ),
    "string_view": _names("string_view wstring_view basic_string_view"),
    "system_error": _names(
        "error_code error_condition error_category system_error errc generic_category "
        "system_category"
    ),
    "thread": _names(
        "thread jthread this_thread sleep_for sleep_until yield get_id hardware_concurrency"
    ),
    "tuple": _names(
        "tuple make_tuple tie forward_as_tuple tuple_cat tuple_size tuple_element get apply ignore"
    ),
    "type_traits": _names(
        "enable_if enable_if_t conditional conditional_t is_same is_same_v is_integral "
        "is_integral_v is_floating_point is_floating_point_v is_arithmetic is_arithmetic_v "
        "is_pointer is_pointer_v is_reference is_const is_class is_enum is_base_of "
        "is_base_of_v is_convertible is_convertible_v is_constructible is_default_constructible "
        "is_copy_constructible is_move_constructible is_trivially_copyable is_void is_array "
        "is_function is_invocable is_invocable_v is_signed is_unsigned remove_reference "
        "remove_reference_t remove_cv remove_cv_t remove_const remove_pointer add_pointer "
        "add_const add_lvalue_reference decay decay_t underlying_type underlying_type_t "
        "invoke_result invoke_result_t result_of common_type common_type_t true_type "
        "false_type integral_constant bool_constant void_t conjunction disjunction negation "
        "is_nothrow_move_constructible aligned_storage remove_cvref remove_cvref_t "
        "is_constant_evaluated has_virtual_destructor"
    ),
    "typeindex": _names("type_index"),
    "typeinfo": _names("type_info bad_cast bad_typeid"),
    "unordered_map": _names("unordered_map unordered_multimap"),
    "unordered_set": _names("unordered_set unordered_multiset"),
    "utility": _names(
        "pair make_pair move forward swap exchange declval as_const integer_sequence "
        "index_sequence make_index_sequence index_sequence_for in_place in_place_t "
        "piecewise_construct to_underlying cmp_equal cmp_less"
    ),
    "valarray": _names("valarray slice gslice slice_array mask_array"),
    "variant": _names(
        "variant visit get_if holds_alternative monostate bad_variant_access variant_size "
        "variant_alternative get"
    ),
    "vector": _names("vector"),
}

# C headers are also reachable as <cNAME>.
_C_ALIASES: Dict[str, str] = {
    "cctype": "ctype.h",
    "cerrno": "errno.h",
    "cfenv": "fenv.h",
    "cfloat": "float.h",
    "cinttypes": "inttypes.h",
    "climits": "limits.h",
    "clocale": "locale.h",
    "cmath": "math.h",
    "csetjmp": "setjmp.h",
    "csignal": "signal.h",
    "cstdarg": "stdarg.h",
    "cstdbool": "stdbool.h",
    "cstdint": "stdint.h",
    "cstdio": "stdio.h",
    "cstdlib": "stdlib.h",
    "cstring": "string.h",
    "ctime": "time.h",
    "cuchar": "uchar.h",
    "cwchar": "wchar.h",
    "cwctype": "wctype.h",
}


def _build_table() -> Dict[str, FrozenSet[str]]:
    table: Dict[str, FrozenSet[str]] = {}
    table.update(_C_HEADERS)
    table.update(_POSIX_HEADERS)
    table.update(_WINDOWS_HEADERS)
    table.update(_CPP_HEADERS)
    for alias, header in _C_ALIASES.items():
        table[alias] = _C_HEADERS[header]
    return table


BUILTIN_HEADER_SYMBOLS: Dict[str, FrozenSet[str]] = _build_table()


def normalize_header_name(header: str) -> str:
    """Canonical spelling used as the table key ("sys\\types.h" -> "sys/types.h")."""
    return header.strip().replace("\\", "/")


def builtin_symbols(header: str) -> Optional[FrozenSet[str]]:
    """Return the built-in symbol table for header, or None if it is not curated.

    Windows header names are case-insensitive, so "Windows.h" finds "windows.h".
    """
    name = normalize_header_name(header)
    if name in BUILTIN_HEADER_SYMBOLS:
        return BUILTIN_HEADER_SYMBOLS[name]
    lowered = name.lower()
    if lowered in _WINDOWS_HEADERS:
        return _WINDOWS_HEADERS[lowered]
    return None
